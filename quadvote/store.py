'''Event stores supplying events, options and votes to the evaluation.

The evaluation never writes anything; it only reads a snapshot of an
event's data through the :class:`EventStore` interface. Vote submission
writes through :meth:`EventStore.upsert_vote`, which must replace any
previous vote of the same identity atomically.

:class:`MemoryEventStore` keeps everything in dictionaries. It is meant for
tests, the command-line tool and embedding; applications with a database
implement the interface on top of it, keyed by (event ID, identity).
'''

import abc
import copy
import logging
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from quadvote.option import Event, Option, Vote

logger = logging.getLogger(__name__)


class EventNotFoundError(LookupError):
    '''The store does not know an event of the given ID.

    :param event_id: The unknown event ID.
    '''
    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f'event not found: {event_id}')


class EventStore(metaclass=abc.ABCMeta):
    '''Supply event data for evaluation and accept votes.

    Base class, not intended for direct use.
    '''
    @abc.abstractmethod
    def get_event(self, event_id: str) -> Event:
        '''Return the event.

        :raises EventNotFoundError: If there is no such event.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def get_options(self, event_id: str) -> List[Option]:
        '''Return the options of the event, ordered by position.

        :raises EventNotFoundError: If there is no such event.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def get_votes(self, event_id: str) -> List[Vote]:
        '''Return all live votes of the event.

        :raises EventNotFoundError: If there is no such event.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def get_vote(self, event_id: str, identity: str) -> Optional[Vote]:
        '''Return the live vote of the identity, None if it has not voted.

        :raises EventNotFoundError: If there is no such event.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def upsert_vote(self, event_id: str, vote: Vote) -> Vote:
        '''Store the vote, replacing any previous vote of its identity.

        :returns: The vote as stored.
        :raises EventNotFoundError: If there is no such event.
        '''
        raise NotImplementedError


class MemoryEventStore(EventStore):
    '''An event store keeping all data in memory.

    Votes are keyed by (event ID, identity) with last-write-wins semantics.
    Reads return copies, so callers get a snapshot that later writes do not
    change.

    :param events: Events to store initially.
    :param options: Options to store initially, by event ID.
    :param votes: Votes to store initially, by event ID.
    '''
    def __init__(self,
                 events: Sequence[Event] = (),
                 options: Optional[Dict[str, Sequence[Option]]] = None,
                 votes: Optional[Dict[str, Sequence[Vote]]] = None,
                 ):
        self._lock = threading.Lock()
        self._events: Dict[str, Event] = {}
        self._options: Dict[str, List[Option]] = {}
        self._votes: Dict[Tuple[str, str], Vote] = {}
        for event in events:
            self.add_event(event, (options or {}).get(event.id, ()))
        for event_id, event_votes in (votes or {}).items():
            for vote in event_votes:
                self.upsert_vote(event_id, vote)

    def add_event(self, event: Event, options: Sequence[Option] = ()) -> None:
        '''Add or replace an event together with its options.'''
        with self._lock:
            self._events[event.id] = event
            self._options[event.id] = sorted(
                options, key=lambda opt: opt.position
            )

    def get_event(self, event_id: str) -> Event:
        self._check_event(event_id)
        return self._events[event_id]

    def get_options(self, event_id: str) -> List[Option]:
        self._check_event(event_id)
        return list(self._options[event_id])

    def get_votes(self, event_id: str) -> List[Vote]:
        self._check_event(event_id)
        with self._lock:
            return [
                copy.deepcopy(vote)
                for (vote_event_id, _), vote in self._votes.items()
                if vote_event_id == event_id
            ]

    def get_vote(self, event_id: str, identity: str) -> Optional[Vote]:
        self._check_event(event_id)
        with self._lock:
            vote = self._votes.get((event_id, identity))
            return None if vote is None else copy.deepcopy(vote)

    def upsert_vote(self, event_id: str, vote: Vote) -> Vote:
        self._check_event(event_id)
        key = (event_id, vote.invite_code)
        stored = copy.deepcopy(vote)
        with self._lock:
            previous = self._votes.get(key)
            if previous is not None:
                stored.updated_at = vote.submitted_at
                stored.submitted_at = previous.submitted_at
                logger.debug('replacing vote of %s in event %s',
                             vote.invite_code, event_id)
            self._votes[key] = stored
        return copy.deepcopy(stored)

    def _check_event(self, event_id: str) -> None:
        if event_id not in self._events:
            raise EventNotFoundError(event_id)
