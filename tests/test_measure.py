
import sys
import os
import math
import datetime
import random

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import quadvote.measure
from quadvote.option import Option, Vote


@pytest.mark.parametrize('values, expected', [
    ([], 0),
    ([0, 0, 0], 0),
    ([5], 0),
    ([500, 500], 0),
    ([1, 1, 1, 1], 0),
    ([0, 1000], 0.5),
    ([1000, 0, 0, 0], 0.75),
    ([1, 2, 3], 2 / 9),
])
def test_gini(values, expected):
    assert quadvote.measure.gini(values) == pytest.approx(expected, abs=1e-9)


@pytest.mark.parametrize('n', [2, 3, 5, 10, 100])
def test_gini_single_holder(n):
    values = [0] * (n - 1) + [1000]
    assert quadvote.measure.gini(values) == pytest.approx((n - 1) / n)


def test_gini_order_independent():
    assert (
        quadvote.measure.gini([3, 1, 2])
        == pytest.approx(quadvote.measure.gini([1, 2, 3]))
    )


def test_gini_bounds():
    rng = random.Random(42)
    for _ in range(200):
        values = [
            rng.choice([0, rng.random() * 1000])
            for _ in range(rng.randint(1, 20))
        ]
        coef = quadvote.measure.gini(values)
        assert -1e-9 <= coef <= 1 + 1e-9


VOTES = [
    Vote('v1', {'A': 100}),
    Vote('v2', {'A': 16, 'B': 64}),
    Vote('v3', {'B': 4, 'C': 0}),
]
OPTIONS = [Option('A', 'Alpha'), Option('B', 'Bravo', 1), Option('C', 'Charlie', 2)]


def test_voting_stats():
    stats = quadvote.measure.voting_stats(VOTES)
    assert stats['total_votes'] == 3
    assert stats['unique_voters'] == 3
    assert stats['avg_credits_used'] == pytest.approx(184 / 3)
    assert stats['max_credits_used'] == 100
    assert stats['min_credits_used'] == 4


def test_voting_stats_empty():
    assert quadvote.measure.voting_stats([]) == {
        'total_votes': 0,
        'unique_voters': 0,
        'avg_credits_used': 0,
        'max_credits_used': 0,
        'min_credits_used': 0,
    }


def test_option_performance():
    perf = {
        entry['option_id']: entry
        for entry in quadvote.measure.option_performance(OPTIONS, VOTES)
    }
    assert perf['A']['total_credits'] == 116
    assert perf['A']['vote_count'] == 2
    assert perf['A']['quadratic_votes'] == pytest.approx(14)
    assert perf['B']['total_credits'] == 68
    assert perf['B']['vote_count'] == 2
    assert perf['B']['quadratic_votes'] == pytest.approx(10)
    assert perf['C']['total_credits'] == 0
    assert perf['C']['vote_count'] == 0
    assert perf['C']['quadratic_votes'] == 0
    assert perf['C']['title'] == 'Charlie'


def test_quadratic_votes_cheaper_spread():
    spread = quadvote.measure.option_performance(
        OPTIONS, [Vote('v', {'A': 25, 'B': 25, 'C': 25})]
    )
    concentrated = quadvote.measure.option_performance(
        OPTIONS, [Vote('v', {'A': 75})]
    )
    assert (
        sum(entry['quadratic_votes'] for entry in spread)
        > sum(entry['quadratic_votes'] for entry in concentrated)
    )
    assert concentrated[0]['quadratic_votes'] == pytest.approx(math.sqrt(75))


def test_quadratic_votes_summed_per_voter():
    perf = quadvote.measure.option_performance(
        OPTIONS[:1], [Vote('v1', {'A': 16}), Vote('v2', {'A': 9})]
    )
    assert perf[0]['total_credits'] == 25
    assert perf[0]['quadratic_votes'] == pytest.approx(7)


def test_participation_timeline():
    utc = datetime.timezone.utc
    plus_two = datetime.timezone(datetime.timedelta(hours=2))
    votes = [
        Vote('v1', {'A': 100},
             submitted_at=datetime.datetime(2024, 3, 1, 10, 5, tzinfo=utc)),
        Vote('v2', {'A': 16, 'B': 64},
             submitted_at=datetime.datetime(2024, 3, 1, 9, 59, tzinfo=utc)),
        Vote('v3', {'B': 4},
             submitted_at=datetime.datetime(2024, 3, 1, 12, 30,
                                            tzinfo=plus_two)),
        Vote('v4', {'C': 9}),
    ]
    timeline = quadvote.measure.participation_timeline(votes)
    assert timeline == [
        {'hour': datetime.datetime(2024, 3, 1, 9, tzinfo=utc),
         'vote_count': 1, 'total_credits': 80},
        {'hour': datetime.datetime(2024, 3, 1, 10, tzinfo=utc),
         'vote_count': 2, 'total_credits': 104},
    ]


def test_participation_timeline_empty():
    assert quadvote.measure.participation_timeline([]) == []
    assert quadvote.measure.participation_timeline([Vote('v', {'A': 1})]) == []
