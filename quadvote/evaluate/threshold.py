'''Threshold selectors for binary selection decisions.

Each selector corresponds to one threshold mode of
:class:`quadvote.evaluate.core.BinarySelectionConfig`. They accept ranked
votes (option IDs mapped to aggregated votes, in rank order) and return the
IDs of the selected options in rank order. Ties are not resolved here; the
ranking given to the selectors has already been tiebroken.

Vote totals are sums of square roots, so comparisons against a threshold
tolerate floating point error: a total within a relative 1e-9 of the
threshold counts as reaching it.
'''

import math
from typing import Dict, List, Optional
from numbers import Number

import quadvote.util
from quadvote.persist import simple_serialization

REL_TOLERANCE = 1e-9
ABS_TOLERANCE = 1e-12


def reaches(n_votes: Number, threshold: Number) -> bool:
    '''Return True if the votes are at least the threshold, with tolerance.'''
    return n_votes >= threshold or math.isclose(
        n_votes, threshold, rel_tol=REL_TOLERANCE, abs_tol=ABS_TOLERANCE
    )


@simple_serialization
class TopN:
    '''Select the N options ranked highest.

    :param n: Number of options to select. If there are fewer options,
        all are selected.
    '''
    def __init__(self, n: int):
        self.n = int(n)

    def evaluate(self, votes: Dict[str, Number]) -> List[str]:
        '''Select the first N options of the ranking.

        :param votes: Ranked votes.
        '''
        return list(votes.keys())[:self.n]

    def margin(self, votes: Dict[str, Number]) -> Optional[Number]:
        '''Return the vote gap between the last selected and first unselected.

        :param votes: Ranked votes.
        :returns: The gap, or None if either option does not exist.
        '''
        totals = list(votes.values())
        if self.n < 1 or len(totals) <= self.n:
            return None
        return totals[self.n - 1] - totals[self.n]


@simple_serialization
class PercentageOfMaximum:
    '''Select options with at least a given percentage of the best's votes.

    :param percentage: The threshold as a percentage of the maximum number
        of votes any option got.
    '''
    def __init__(self, percentage: Number):
        self.percentage = percentage

    def evaluate(self, votes: Dict[str, Number]) -> List[str]:
        '''Select options reaching the percentage of the maximum.

        :param votes: Ranked votes.
        '''
        max_votes = max(votes.values(), default=0)
        threshold = max_votes * (self.percentage / 100)
        return [
            option_id for option_id, n_votes in votes.items()
            if reaches(n_votes, threshold)
        ]


@simple_serialization
class AbsoluteThreshold:
    '''Select options with at least a given number of votes.

    :param threshold: The absolute threshold as a number of votes.
    '''
    def __init__(self, threshold: Number):
        self.threshold = threshold

    def evaluate(self, votes: Dict[str, Number]) -> List[str]:
        '''Select options by a given absolute threshold of votes.

        :param votes: Ranked votes.
        '''
        return [
            option_id for option_id, n_votes in votes.items()
            if reaches(n_votes, self.threshold)
        ]


@simple_serialization
class AboveAverage:
    '''Select options with at least the mean number of votes.

    If all options got the same number of votes, all of them are selected.
    '''
    def evaluate(self, votes: Dict[str, Number]) -> List[str]:
        '''Select options reaching the average.

        :param votes: Ranked votes.
        '''
        average = quadvote.util.mean(votes.values())
        return [
            option_id for option_id, n_votes in votes.items()
            if reaches(n_votes, average)
        ]
