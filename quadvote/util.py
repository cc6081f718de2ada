'''Helper functions shared by the modules of Quadvote. Internal.'''

import operator
from typing import Any, List, Tuple, Dict, Iterable, Mapping
from numbers import Number


def add_to_totals(totals: Dict[Any, Number],
                  additions: Mapping[Any, Number],
                  ) -> None:
    '''Add the values of additions to totals key by key, in place.'''
    for key, value in additions.items():
        totals[key] = totals.get(key, 0) + value


def sorted_votes(votes: Mapping[Any, Number],
                 descending: bool = True,
                 ) -> List[Tuple[Any, Number]]:
    '''Return the vote items ordered by the number of votes.

    The sort is stable, so items with equal votes keep their input order.
    '''
    return sorted(votes.items(), key=operator.itemgetter(1), reverse=descending)


def mean(values: Iterable[Number]) -> float:
    '''Return the arithmetic mean of the values, zero if there are none.'''
    values = list(values)
    if not values:
        return 0
    return sum(values) / len(values)


def is_whole_number(value: Any) -> bool:
    '''Return True for ints and integral floats, False for anything else.

    Booleans are not considered numbers here even though they subclass int.
    '''
    if isinstance(value, bool):
        return False
    elif isinstance(value, int):
        return True
    elif isinstance(value, float):
        return value.is_integer()
    else:
        return False
