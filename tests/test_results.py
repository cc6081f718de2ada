
import sys
import os
import datetime

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import quadvote.results
import quadvote.vote
from quadvote.evaluate.core import (
    BinaryResults, ProportionalResults, ConfigError, UnknownFrameworkTypeError,
)
from quadvote.option import Event, Option, Vote
from quadvote.store import MemoryEventStore, EventNotFoundError
from quadvote.system import DecisionFramework

UTC = datetime.timezone.utc
START = datetime.datetime(2024, 5, 1, tzinfo=UTC)
END = datetime.datetime(2024, 5, 31, 23, 59, tzinfo=UTC)
DURING = datetime.datetime(2024, 5, 10, tzinfo=UTC)
AFTER = datetime.datetime(2024, 6, 2, tzinfo=UTC)

OPTIONS = [Option('A', 'Alpha', 0), Option('B', 'Bravo', 1),
           Option('C', 'Charlie', 2)]


def make_store(framework, votes=(), options=OPTIONS, event_id='ev1'):
    event = Event(
        id=event_id,
        start_time=START,
        end_time=END,
        decision_framework=framework,
        credits_per_voter=100,
    )
    return MemoryEventStore(
        [event], options={event_id: options}, votes={event_id: list(votes)}
    )


def submit_all(store, allocations, event_id='ev1'):
    for i, alloc in enumerate(allocations):
        quadvote.vote.submit_vote(store, event_id, f'voter{i}', alloc,
                                  now=DURING)


def test_top_n_scenario():
    store = make_store(
        DecisionFramework.binary(threshold_mode='top_n', top_n_count=2)
    )
    submit_all(store, [{'A': 100}, {'B': 64}, {'C': 36}])
    res = quadvote.results.get_results(store, 'ev1', now=AFTER)
    assert res.event_id == 'ev1'
    assert res.framework_type == 'binary_selection'
    assert isinstance(res.results, BinaryResults)
    votes = {r.option_id: r.votes for r in res.results.ranking}
    assert votes == pytest.approx({'A': 10, 'B': 8, 'C': 6})
    assert {r.option_id for r in res.results.selected_options} == {'A', 'B'}
    assert {r.option_id for r in res.results.not_selected_options} == {'C'}
    assert res.results.selection_margin == pytest.approx(2)
    assert res.participation.total_voters == 3
    assert res.participation.total_credits_allocated == 200
    assert res.participation.voting_start == START
    assert res.participation.voting_end == END
    assert res.participation.is_final
    assert res.calculated_at == AFTER


def test_proportional_scenario():
    store = make_store(DecisionFramework.proportional(
        resource_name='Budget', resource_symbol='$', total_pool_amount=1000,
    ), options=OPTIONS[:2])
    submit_all(store, [{'A': 100}, {'B': 100}])
    res = quadvote.results.get_results(store, 'ev1', now=AFTER)
    assert res.framework_type == 'proportional_distribution'
    assert isinstance(res.results, ProportionalResults)
    for dist in res.results.distributions:
        assert dist.votes == pytest.approx(10)
        assert dist.allocation_amount == pytest.approx(500)
        assert dist.allocation_percentage == pytest.approx(50)
    assert res.results.gini_coefficient == pytest.approx(0, abs=1e-9)
    assert res.results.total_allocated == pytest.approx(1000)


@pytest.mark.parametrize('now, is_final', [
    (DURING, False),
    (END, False),
    (END + datetime.timedelta(seconds=1), True),
    (AFTER, True),
])
def test_is_final(now, is_final):
    store = make_store(DecisionFramework.binary(threshold_mode='above_average'))
    res = quadvote.results.get_results(store, 'ev1', now=now)
    assert res.participation.is_final == is_final


def test_naive_now():
    store = make_store(DecisionFramework.binary(threshold_mode='above_average'))
    res = quadvote.results.get_results(
        store, 'ev1', now=datetime.datetime(2024, 6, 1)
    )
    assert res.participation.is_final
    assert res.calculated_at == datetime.datetime(2024, 6, 1, tzinfo=UTC)


def test_default_now():
    store = make_store(DecisionFramework.binary(threshold_mode='above_average'))
    res = quadvote.results.get_results(store, 'ev1')
    # the fixture event ended in the past
    assert res.participation.is_final
    assert res.calculated_at.tzinfo is not None


@pytest.mark.parametrize('framework', [
    DecisionFramework.binary(threshold_mode='top_n', top_n_count=1),
    DecisionFramework.binary(threshold_mode='above_average',
                             tiebreaker='random'),
    DecisionFramework.proportional(
        resource_name='Hours', resource_symbol='h', total_pool_amount=40,
        minimum_allocation_enabled=True, minimum_allocation_percentage=20,
    ),
])
def test_idempotent(framework):
    store = make_store(framework)
    submit_all(store, [{'A': 50, 'B': 50}, {'B': 2, 'C': 2}, {'C': 81}])
    first = quadvote.results.get_results(store, 'ev1', now=AFTER)
    second = quadvote.results.get_results(store, 'ev1', now=AFTER)
    assert first.to_dict() == second.to_dict()


def test_random_tiebreak_seeded_by_event():
    options = [Option(f'o{i}', f'Option {i}', i) for i in range(10)]
    framework = {
        'framework_type': 'binary_selection',
        'config': {'threshold_mode': 'top_n', 'top_n_count': 3,
                   'tiebreaker': 'random'},
    }
    allocations = [{opt.id: 1 for opt in options}]
    first = make_store(framework, options=options)
    second = make_store(framework, options=options)
    submit_all(first, allocations)
    submit_all(second, allocations)
    assert (
        quadvote.results.get_results(first, 'ev1', now=AFTER).to_dict()
        == quadvote.results.get_results(second, 'ev1', now=AFTER).to_dict()
    )


def test_resubmission_counts_once():
    store = make_store(
        DecisionFramework.binary(threshold_mode='top_n', top_n_count=1)
    )
    quadvote.vote.submit_vote(store, 'ev1', 'x', {'A': 100}, now=DURING)
    quadvote.vote.submit_vote(store, 'ev1', 'x', {'B': 49}, now=DURING)
    res = quadvote.results.get_results(store, 'ev1', now=AFTER)
    votes = {r.option_id: r.votes for r in res.results.ranking}
    assert votes == {'B': 7, 'A': 0, 'C': 0}
    assert res.participation.total_voters == 1
    assert res.participation.total_credits_allocated == 49


def test_no_votes():
    store = make_store(
        DecisionFramework.binary(threshold_mode='top_n', top_n_count=2)
    )
    res = quadvote.results.get_results(store, 'ev1', now=DURING)
    assert res.participation.total_voters == 0
    assert res.participation.total_credits_allocated == 0
    assert res.results.selected_count == 2


def test_framework_dict_form():
    store = make_store({
        'framework_type': 'proportional_distribution',
        'config': {'resource_name': 'Seats', 'resource_symbol': 'S',
                   'total_pool_amount': 10},
    })
    submit_all(store, [{'A': 9}, {'B': 1}])
    res = quadvote.results.get_results(store, 'ev1', now=AFTER)
    amounts = {d.option_id: d.allocation_amount
               for d in res.results.distributions}
    assert amounts == pytest.approx({'A': 7.5, 'B': 2.5, 'C': 0})


def test_unknown_framework():
    store = make_store({'framework_type': 'ranked_choice', 'config': {}})
    with pytest.raises(UnknownFrameworkTypeError):
        quadvote.results.get_results(store, 'ev1', now=AFTER)


def test_incomplete_config():
    store = make_store({
        'framework_type': 'binary_selection',
        'config': {'threshold_mode': 'percentage'},
    })
    with pytest.raises(ConfigError):
        quadvote.results.get_results(store, 'ev1', now=AFTER)


def test_unknown_event():
    store = make_store(DecisionFramework.binary(threshold_mode='above_average'))
    with pytest.raises(EventNotFoundError):
        quadvote.results.get_results(store, 'missing')


def test_stray_votes_ignored():
    store = make_store(
        DecisionFramework.binary(threshold_mode='top_n', top_n_count=1),
        votes=[Vote('old', {'Z': 100, 'A': 4})],
    )
    res = quadvote.results.get_results(store, 'ev1', now=AFTER)
    assert [r.option_id for r in res.results.ranking] == ['A', 'B', 'C']


def test_evaluate_event_directly():
    event = Event(
        'ev2', START, END,
        DecisionFramework.binary(threshold_mode='absolute_votes',
                                 absolute_vote_threshold=5),
    )
    votes = [Vote('a', {'A': 25}), Vote('b', {'B': 16})]
    res = quadvote.results.evaluate_event(event, OPTIONS, votes, now=DURING)
    assert [r.option_id for r in res.results.selected_options] == ['A']
    assert not res.participation.is_final


def test_to_dict():
    store = make_store(
        DecisionFramework.binary(threshold_mode='top_n', top_n_count=2)
    )
    submit_all(store, [{'A': 100}, {'B': 64}, {'C': 36}])
    out = quadvote.results.get_results(store, 'ev1', now=AFTER).to_dict()
    assert out['event_id'] == 'ev1'
    assert out['framework_type'] == 'binary_selection'
    assert out['results']['selected_count'] == 2
    assert out['participation'] == {
        'total_voters': 3,
        'total_credits_allocated': 200,
        'voting_start': '2024-05-01T00:00:00+00:00',
        'voting_end': '2024-05-31T23:59:00+00:00',
        'is_final': True,
    }
    assert out['calculated_at'] == '2024-06-02T00:00:00+00:00'
