'''Compute the results of an event.

The results are derived data: they are recomputed from the event's votes,
options and decision framework on every request and never stored. The
computation has no side effects, so repeated calls for an unchanged event
give equal results (random tiebreaking included, since it is seeded with
the event ID unless the configuration sets its own seed).

Errors are not caught here. An unknown framework type or an incomplete
configuration raises a :class:`quadvote.evaluate.core.ConfigError` rather
than producing an empty result, and a missing event raises the store's
:class:`quadvote.store.EventNotFoundError`.
'''

import dataclasses
import datetime
import logging
from typing import Any, Dict, Optional, Sequence, Union

import quadvote.convert
import quadvote.vote
from quadvote.evaluate.core import BinaryResults, ProportionalResults
from quadvote.option import Event, Option, Vote
from quadvote.system import DecisionFramework

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Participation:
    '''Participation metadata of an event.'''
    total_voters: int
    total_credits_allocated: int
    voting_start: datetime.datetime
    voting_end: datetime.datetime
    is_final: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_voters': self.total_voters,
            'total_credits_allocated': self.total_credits_allocated,
            'voting_start': self.voting_start.isoformat(),
            'voting_end': self.voting_end.isoformat(),
            'is_final': self.is_final,
        }


@dataclasses.dataclass
class EventResults:
    '''Results of an event under its decision framework.'''
    event_id: str
    framework_type: str
    results: Union[BinaryResults, ProportionalResults]
    participation: Participation
    calculated_at: datetime.datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'framework_type': self.framework_type,
            'results': self.results.to_dict(),
            'participation': self.participation.to_dict(),
            'calculated_at': self.calculated_at.isoformat(),
        }


def evaluate_event(event: Event,
                   options: Sequence[Option],
                   votes: Sequence[Vote],
                   now: Optional[datetime.datetime] = None,
                   ) -> EventResults:
    '''Compute the results of an event from its data.

    :param event: The event.
    :param options: Options of the event.
    :param votes: All live votes of the event.
    :param now: Time of the computation, to decide whether the results
        are final; the current time by default.
    :raises UnknownFrameworkTypeError: If the event's framework type is
        unknown.
    :raises ConfigError: If the framework configuration is invalid.
    '''
    framework = DecisionFramework.coerce(event.decision_framework)
    if now is None:
        now = quadvote.vote.current_time(event.end_time)
    else:
        now = quadvote.vote.comparable_time(now, event.end_time)
    totals = quadvote.convert.aggregate_votes(votes)
    option_ids = {opt.id for opt in options}
    stray = [option_id for option_id in totals if option_id not in option_ids]
    if stray:
        logger.warning('event %s has votes for unknown options %s, ignoring',
                       event.id, ', '.join(sorted(stray)))
    logger.info('evaluating event %s (%s) with %d votes for %d options',
                event.id, framework.framework_type, len(votes), len(options))
    results = framework.evaluate(totals, options, seed=event.id)
    participation = Participation(
        total_voters=len(votes),
        total_credits_allocated=sum(
            vote.total_credits_used or 0 for vote in votes
        ),
        voting_start=event.start_time,
        voting_end=event.end_time,
        is_final=event.is_closed(now),
    )
    return EventResults(
        event_id=event.id,
        framework_type=framework.framework_type,
        results=results,
        participation=participation,
        calculated_at=now,
    )


class ResultsCalculator:
    '''Compute event results from the data in an event store.

    :param store: A :class:`quadvote.store.EventStore`.
    '''
    def __init__(self, store):
        self.store = store

    def calculate(self,
                  event_id: str,
                  now: Optional[datetime.datetime] = None,
                  ) -> EventResults:
        '''Load the event's data and compute its results.

        :param event_id: ID of the event.
        :param now: Time of the computation; the current time by default.
        :raises EventNotFoundError: If the store does not know the event.
        '''
        event = self.store.get_event(event_id)
        options = self.store.get_options(event_id)
        votes = self.store.get_votes(event_id)
        return evaluate_event(event, options, votes, now=now)


def get_results(store,
                event_id: str,
                now: Optional[datetime.datetime] = None,
                ) -> EventResults:
    '''Compute the results of an event in the store (see ResultsCalculator).'''
    return ResultsCalculator(store).calculate(event_id, now=now)
