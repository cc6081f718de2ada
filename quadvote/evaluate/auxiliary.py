'''Tiebreakers that order options with equal numbers of votes.

A tiebreaker does not look at the votes at all. It puts the options into a
preference order, and the evaluators then perform a stable sort of that
order by votes. Options with equal votes thus keep the order the tiebreaker
gave them, which makes the whole ranking deterministic for the deterministic
tiebreakers.

The random tiebreaker can be made stable by giving it a seed. The results
orchestrator seeds it with the event ID, so that repeated evaluations of an
unchanged event give the same ranking; without any seed, the order changes
from call to call.
'''

import abc
import logging
import random
from typing import Any, List, Sequence, Tuple

from quadvote.option import Option
from quadvote.persist import simple_serialization
import quadvote.evaluate.core

logger = logging.getLogger(__name__)


class Tiebreaker(metaclass=abc.ABCMeta):
    '''Order options by preference for breaking vote ties.'''
    @abc.abstractmethod
    def order(self, options: Sequence[Option]) -> List[Option]:
        '''Return the options, most preferred first.'''
        raise NotImplementedError


@simple_serialization
class TimestampTiebreaker(Tiebreaker):
    '''Prefer options created earlier.

    Options without a creation time come after those with one and are
    ordered by their position, then by input order.
    '''
    def order(self, options: Sequence[Option]) -> List[Option]:
        return sorted(options, key=self._key)

    @staticmethod
    def _key(option: Option) -> Tuple:
        if option.created_at is None:
            return (1, option.position)
        return (0, option.created_at, option.position)


@simple_serialization
class AlphabeticalTiebreaker(Tiebreaker):
    '''Prefer options with alphabetically lower titles (then IDs).'''
    def order(self, options: Sequence[Option]) -> List[Option]:
        return sorted(options, key=lambda opt: (opt.title, opt.id))


@simple_serialization
class RandomTiebreaker(Tiebreaker):
    '''Order options randomly.

    :param seed: Seed for the random generator that shuffles the options.
        Any value accepted by :class:`random.Random` works; strings are
        hashed stably across interpreter runs. If None, the order is
        nondeterministic.
    '''
    def __init__(self, seed: Any = None):
        self.seed = seed
        self.stable = (self.seed is not None)

    def order(self, options: Sequence[Option]) -> List[Option]:
        if not self.stable:
            logger.debug('random tiebreaking without seed, order will vary')
        shuffled = list(options)
        random.Random(self.seed).shuffle(shuffled)
        return shuffled


def construct(name: str, seed: Any = None) -> Tiebreaker:
    '''Create a tiebreaker by its configuration name.

    :param name: One of ``timestamp``, ``alphabetical`` or ``random``.
    :param seed: Seed for the random tiebreaker; ignored by the others.
    :raises ConfigError: If the name is unknown.
    '''
    if name == 'random':
        return RandomTiebreaker(seed)
    elif name in TIEBREAKERS:
        return TIEBREAKERS[name]()
    else:
        raise quadvote.evaluate.core.ConfigError(
            f'unknown tiebreaker: {name!r}', field='tiebreaker'
        )


TIEBREAKERS = {
    'timestamp': TimestampTiebreaker,
    'alphabetical': AlphabeticalTiebreaker,
    'random': RandomTiebreaker,
}
