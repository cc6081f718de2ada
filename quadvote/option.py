'''Records describing a voting event, its options and the votes cast in it.

An :class:`Event` is the unit of evaluation. It defines the time window in
which votes are accepted, the number of credits every voter may spread
among the options, and the decision framework that turns the aggregated
votes into a result (see :mod:`quadvote.system`).

An :class:`Option` is anything the voters can allocate credits to. Options
are identified by a string ID unique within the event; their title and
position are used for display and tiebreaking only.

A :class:`Vote` is a single voter's allocation of credits. There is at most
one live vote per event and voter identity; storing a vote for an identity
that already voted replaces the previous one (see :mod:`quadvote.store`).
'''

from __future__ import annotations

import dataclasses
import datetime
from typing import Any, Dict, Optional

import quadvote.convert
import quadvote.persist

Allocation = Dict[str, int]


@dataclasses.dataclass(frozen=True)
class Option:
    '''An option that voters can allocate credits to.

    :param id: Identifier unique within the event.
    :param title: Display title.
    :param position: Ordering position in the event's option list.
    :param created_at: When the option was created; used by the timestamp
        tiebreaker.
    '''
    id: str
    title: str
    position: int = 0
    created_at: Optional[datetime.datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'position': self.position,
            'created_at': _isoformat(self.created_at),
        }


@dataclasses.dataclass(frozen=True)
class Event:
    '''A quadratic voting event.

    :param id: Event identifier.
    :param start_time: Start of the voting window (inclusive).
    :param end_time: End of the voting window (inclusive).
    :param decision_framework: The framework to evaluate results with,
        a :class:`quadvote.system.DecisionFramework` or its plain dictionary
        form (parsed when results are computed).
    :param credits_per_voter: Credit budget of every voter.
    :param title: Display title.
    '''
    id: str
    start_time: datetime.datetime
    end_time: datetime.datetime
    decision_framework: Any
    credits_per_voter: int = 100
    title: Optional[str] = None

    def is_closed(self, now: datetime.datetime) -> bool:
        '''Return True if the voting window has already passed.'''
        return now > self.end_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'start_time': _isoformat(self.start_time),
            'end_time': _isoformat(self.end_time),
            'decision_framework': quadvote.persist.serialize_value(
                self.decision_framework
            ),
            'credits_per_voter': self.credits_per_voter,
        }


@dataclasses.dataclass
class Vote:
    '''A single voter's credit allocation in an event.

    :param invite_code: Voter identity; an invite code or a derived
        anonymous identifier.
    :param allocations: Credits allocated to option IDs.
    :param total_credits_used: Sum of the allocated credits. Computed from
        the allocations if not given.
    :param submitted_at: Time of the first submission.
    :param updated_at: Time of the last resubmission, if any.
    '''
    invite_code: str
    allocations: Allocation
    total_credits_used: Optional[int] = None
    submitted_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    def __post_init__(self):
        if self.total_credits_used is None:
            self.total_credits_used = quadvote.convert.total_credits(
                self.allocations
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'invite_code': self.invite_code,
            'allocations': dict(self.allocations),
            'total_credits_used': self.total_credits_used,
            'submitted_at': _isoformat(self.submitted_at),
            'updated_at': _isoformat(self.updated_at),
        }


def _isoformat(value: Optional[datetime.datetime]) -> Optional[str]:
    return None if value is None else value.isoformat()
