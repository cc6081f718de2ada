'''Convert credit allocations to quadratic votes and aggregate them.

In quadratic voting, every voter receives a budget of credits and spreads
them among the options. Casting *v* votes for an option costs *v²* credits,
so an allocation of *c* credits to an option is worth *√c* votes. This makes
it cheap to express a mild preference for many options and expensive to
concentrate all power on a single one.

The converters here take the allocations as stored (mappings of option IDs to
credits) and produce vote weights that the evaluators in
:mod:`quadvote.evaluate` work with. None of them validate the allocations;
use :class:`quadvote.vote.AllocationValidator` for that before storing them.
'''

import logging
import math
from typing import Any, Dict, Iterable, Mapping, Optional, Union
from numbers import Number

import quadvote.util
from quadvote.persist import simple_serialization

logger = logging.getLogger(__name__)

AllocationLike = Union[Mapping[str, Number], Any]


def quadratic_weight(credits: Number) -> float:
    '''Return the vote weight of a credit amount, its square root.

    Zero credits are worth exactly zero votes.
    '''
    if credits == 0:
        return 0.0
    return math.sqrt(credits)


def total_credits(allocations: Mapping[str, Number]) -> Number:
    '''Return the total number of credits spent by an allocation.'''
    return sum(allocations.values())


def _allocations_of(vote: AllocationLike) -> Mapping[str, Number]:
    # accept both Vote records and bare allocation mappings
    return getattr(vote, 'allocations', vote)


@simple_serialization
class QuadraticVotes:
    '''Convert a single credit allocation to quadratic vote weights.

    :param keep_zero: Whether to keep options with zero credits in the
        output (with zero weight). If False, they are omitted.
    '''
    def __init__(self, keep_zero: bool = True):
        self.keep_zero = keep_zero

    def convert(self, allocations: Mapping[str, Number]) -> Dict[str, float]:
        '''Return the square root of the credits allocated to each option.

        :param allocations: Credits allocated to option IDs.
        '''
        return {
            option_id: quadratic_weight(credits)
            for option_id, credits in allocations.items()
            if self.keep_zero or credits
        }


@simple_serialization
class VoteTotals:
    '''Sum quadratic vote weights for each option over all voters.

    Options that nobody allocated any credits to do not appear in the output;
    downstream evaluators treat them as having zero votes.

    :param transform: Converter of single allocations to vote weights.
    '''
    def __init__(self, transform: Optional[QuadraticVotes] = None):
        if transform is None:
            transform = QuadraticVotes(keep_zero=False)
        self.transform = transform

    def convert(self, votes: Iterable[AllocationLike]) -> Dict[str, float]:
        '''Aggregate the votes of all voters.

        :param votes: Votes as :class:`quadvote.option.Vote` records or bare
            allocation mappings.
        '''
        totals = {}
        n_voters = 0
        for vote in votes:
            quadvote.util.add_to_totals(
                totals, self.transform.convert(_allocations_of(vote))
            )
            n_voters += 1
        logger.debug('aggregated %d votes into totals for %d options',
                     n_voters, len(totals))
        return totals


DEFAULT_TRANSFORM = QuadraticVotes()
DEFAULT_AGGREGATOR = VoteTotals()


def quadratic_votes(allocations: Mapping[str, Number]) -> Dict[str, float]:
    '''Convert a single allocation to vote weights (see QuadraticVotes).'''
    return DEFAULT_TRANSFORM.convert(allocations)


def aggregate_votes(votes: Iterable[AllocationLike]) -> Dict[str, float]:
    '''Aggregate vote weights over all voters (see VoteTotals).'''
    return DEFAULT_AGGREGATOR.convert(votes)
