
import sys
import os
import math

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import quadvote.evaluate.threshold

RANKED = {'A': 10, 'B': 8, 'C': 6, 'D': 0}


@pytest.mark.parametrize('n, selected, margin', [
    (1, ['A'], 2),
    (2, ['A', 'B'], 2),
    (3, ['A', 'B', 'C'], 6),
    (4, ['A', 'B', 'C', 'D'], None),
    (10, ['A', 'B', 'C', 'D'], None),
])
def test_top_n(n, selected, margin):
    selector = quadvote.evaluate.threshold.TopN(n)
    assert selector.evaluate(RANKED) == selected
    assert selector.margin(RANKED) == margin


def test_top_n_empty():
    selector = quadvote.evaluate.threshold.TopN(2)
    assert selector.evaluate({}) == []
    assert selector.margin({}) is None


@pytest.mark.parametrize('percentage, selected', [
    (100, ['A']),
    (80, ['A', 'B']),
    (60, ['A', 'B', 'C']),
    (59, ['A', 'B', 'C']),
    (1, ['A', 'B', 'C']),
])
def test_percentage(percentage, selected):
    selector = quadvote.evaluate.threshold.PercentageOfMaximum(percentage)
    assert selector.evaluate(RANKED) == selected


def test_percentage_all_zero():
    selector = quadvote.evaluate.threshold.PercentageOfMaximum(50)
    assert selector.evaluate({'A': 0, 'B': 0}) == ['A', 'B']


@pytest.mark.parametrize('threshold, selected', [
    (10, ['A']),
    (8, ['A', 'B']),
    (7.9, ['A', 'B']),
    (0.5, ['A', 'B', 'C']),
    (11, []),
])
def test_absolute(threshold, selected):
    selector = quadvote.evaluate.threshold.AbsoluteThreshold(threshold)
    assert selector.evaluate(RANKED) == selected


def test_absolute_float_tolerance():
    votes = {'A': 0.3, 'B': 0.2}
    selector = quadvote.evaluate.threshold.AbsoluteThreshold(0.1 * 3)
    assert selector.evaluate(votes) == ['A']


@pytest.mark.parametrize('votes, selected', [
    (RANKED, ['A', 'B', 'C']),
    ({'A': 5, 'B': 5, 'C': 5}, ['A', 'B', 'C']),
    ({'A': 0.1, 'B': 0.1, 'C': 0.1}, ['A', 'B', 'C']),
    ({'A': 9, 'B': 1, 'C': 1, 'D': 1}, ['A']),
    ({'A': 0, 'B': 0}, ['A', 'B']),
    ({}, []),
])
def test_above_average(votes, selected):
    selector = quadvote.evaluate.threshold.AboveAverage()
    assert selector.evaluate(votes) == selected


def test_above_average_iff_mean():
    votes = {'A': 7.5, 'B': 4.0, 'C': 3.5, 'D': 1.0}
    mean = sum(votes.values()) / len(votes)
    selector = quadvote.evaluate.threshold.AboveAverage()
    assert selector.evaluate(votes) == [
        key for key, val in votes.items() if val >= mean
    ]


def test_reaches():
    assert quadvote.evaluate.threshold.reaches(3, 3)
    assert quadvote.evaluate.threshold.reaches(0.30000000000000004, 0.3)
    assert quadvote.evaluate.threshold.reaches(0.3 - 1e-17, 0.3)
    assert not quadvote.evaluate.threshold.reaches(2.99, 3)
