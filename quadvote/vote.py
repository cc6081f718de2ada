'''Credit allocation validation and vote submission.

A quadratic vote is a mapping of option IDs to non-negative integer credit
amounts whose sum must not exceed the voter's credit budget. Before a vote is
stored, it must be checked by :class:`AllocationValidator`, which also
rejects votes cast outside the event's voting window. If the vote is
invalid, the validator raises a subclass of :class:`VoteError`.

Validation is a pure function of the event parameters and the allocation,
so it is safe to run concurrently for different voters. Atomicity of the
replace-or-insert that follows is up to the event store
(:mod:`quadvote.store`); :func:`submit_vote` wires the two together and
guarantees that an invalid resubmission never touches the stored vote.
'''

from __future__ import annotations

import abc
import datetime
import hashlib
import logging
from typing import Any, Collection, Dict, Mapping, Optional
from numbers import Number

import quadvote.convert
import quadvote.util
from quadvote.option import Allocation, Event, Option, Vote
from quadvote.persist import simple_serialization

logger = logging.getLogger(__name__)

ANONYMOUS_CODE = 'anonymous'
ANONYMOUS_PREFIX = 'anon_'
ANONYMOUS_DIGEST_LENGTH = 32


class VoteError(Exception, metaclass=abc.ABCMeta):
    '''A vote is invalid given the event rules.'''
    pass


class InvalidOptionError(VoteError):
    '''The allocation references an option that does not belong to the event.

    :param option_id: The unknown option ID.
    '''
    def __init__(self, option_id: Any):
        self.option_id = option_id
        super().__init__(f'invalid option ID: {option_id}')


class InvalidCreditValueError(VoteError):
    '''A credit amount is negative or not an integer.

    :param option_id: Option the invalid amount was allocated to.
    :param value: The invalid amount.
    '''
    def __init__(self, option_id: Any, value: Any):
        self.option_id = option_id
        self.value = value
        super().__init__(
            f'invalid credit allocation for option {option_id}: {value!r},'
            ' must be a non-negative integer'
        )


class CreditLimitExceededError(VoteError):
    '''The allocation spends more credits than the voter has.

    :param total: Total credits spent by the allocation.
    :param limit: The credit budget of the voter.
    '''
    def __init__(self, total: Number, limit: Number):
        self.total = total
        self.limit = limit
        super().__init__(f'total credits ({total}) exceeds limit ({limit})')


class VotingClosedError(VoteError):
    '''The vote was submitted outside of the event's voting window.

    :param at: Time of the submission.
    :param start_time: Start of the voting window.
    :param end_time: End of the voting window.
    '''
    def __init__(self,
                 at: datetime.datetime,
                 start_time: Optional[datetime.datetime] = None,
                 end_time: Optional[datetime.datetime] = None,
                 ):
        self.at = at
        self.start_time = start_time
        self.end_time = end_time
        if start_time is not None and at < start_time:
            reason = f'voting opens at {start_time.isoformat()}'
        else:
            reason = f'voting closed at {end_time.isoformat()}'
        super().__init__(f'voting is closed: {reason}')


@simple_serialization
class AllocationValidator:
    '''Validate a credit allocation under the rules of an event.

    The checks run in the following order: voting window, option IDs,
    credit values and the credit budget. The first failing check raises.

    :param credit_budget: Number of credits each voter may spend.
    :param option_ids: IDs of the options belonging to the event.
    :param start_time: Start of the voting window (inclusive). None means
        no lower bound is checked.
    :param end_time: End of the voting window (inclusive). None means no
        upper bound is checked.
    '''
    def __init__(self,
                 credit_budget: int,
                 option_ids: Collection[str],
                 start_time: Optional[datetime.datetime] = None,
                 end_time: Optional[datetime.datetime] = None,
                 ):
        self.credit_budget = credit_budget
        self.option_ids = frozenset(option_ids)
        self.start_time = start_time
        self.end_time = end_time

    @classmethod
    def for_event(cls,
                  event: Event,
                  options: Collection[Option],
                  ) -> AllocationValidator:
        '''Create a validator from an event and its options.'''
        return cls(
            credit_budget=event.credits_per_voter,
            option_ids=[opt.id for opt in options],
            start_time=event.start_time,
            end_time=event.end_time,
        )

    def validate(self,
                 allocations: Mapping[str, Any],
                 now: Optional[datetime.datetime] = None,
                 ) -> Allocation:
        '''Check the allocation and return it normalized.

        :param allocations: Credits allocated to option IDs.
        :param now: Time of the submission; the current time by default.
        :returns: A new allocation dictionary with the same keys and the
            amounts as ints, safe to store and aggregate.
        :raises VotingClosedError: If the voting window is not open.
        :raises InvalidOptionError: If an option ID is not in the event.
        :raises InvalidCreditValueError: If an amount is negative or not an
            integer.
        :raises CreditLimitExceededError: If the amounts exceed the budget.
        '''
        self.check_window(now)
        for option_id in allocations.keys():
            if option_id not in self.option_ids:
                raise InvalidOptionError(option_id)
        normalized = {}
        for option_id, credits in allocations.items():
            if not quadvote.util.is_whole_number(credits) or credits < 0:
                raise InvalidCreditValueError(option_id, credits)
            normalized[option_id] = int(credits)
        total = quadvote.convert.total_credits(normalized)
        if total > self.credit_budget:
            raise CreditLimitExceededError(total, self.credit_budget)
        return normalized

    def is_valid(self,
                 allocations: Mapping[str, Any],
                 now: Optional[datetime.datetime] = None,
                 ) -> bool:
        '''Return True if the allocation passes all checks.'''
        try:
            self.validate(allocations, now)
        except VoteError:
            return False
        return True

    def check_window(self, now: Optional[datetime.datetime] = None) -> None:
        '''Check that the voting window is open at the given time.

        :raises VotingClosedError: If it is not.
        '''
        if self.start_time is None and self.end_time is None:
            return
        reference = self.end_time or self.start_time
        if now is None:
            now = current_time(reference)
        else:
            now = comparable_time(now, reference)
        if (
            (self.start_time is not None and now < self.start_time)
            or (self.end_time is not None and now > self.end_time)
        ):
            raise VotingClosedError(now, self.start_time, self.end_time)

    def remaining_credits(self, allocations: Mapping[str, Number]) -> Number:
        '''Return the number of credits the allocation leaves unspent.'''
        return self.credit_budget - quadvote.convert.total_credits(allocations)


def current_time(reference: Optional[datetime.datetime] = None
                 ) -> datetime.datetime:
    '''Return the current time comparable with the reference timestamp.

    Naive references get a naive local time, aware ones an aware time in
    the same zone. Without a reference, an aware UTC time is returned.
    '''
    if reference is None:
        return datetime.datetime.now(datetime.timezone.utc)
    return datetime.datetime.now(reference.tzinfo)


def comparable_time(moment: datetime.datetime,
                    reference: Optional[datetime.datetime],
                    ) -> datetime.datetime:
    '''Return the moment in a form comparable with the reference timestamp.

    A naive moment is taken to be in the zone of an aware reference. An
    aware moment compared with a naive reference becomes naive local time.
    '''
    if reference is None or (
        (moment.tzinfo is None) == (reference.tzinfo is None)
    ):
        return moment
    if moment.tzinfo is None:
        return moment.replace(tzinfo=reference.tzinfo)
    return moment.astimezone().replace(tzinfo=None)


def anonymous_identity(event_id: str,
                       ip_address: Optional[str] = None,
                       user_agent: Optional[str] = None,
                       ) -> str:
    '''Derive a voter identity for public events without invite codes.

    The identity is stable for the same client and event so that repeated
    submissions replace each other.
    '''
    seed = f'{ip_address or "unknown"}-{user_agent or "unknown"}-{event_id}'
    digest = hashlib.sha256(seed.encode('utf8')).hexdigest()
    return ANONYMOUS_PREFIX + digest[:ANONYMOUS_DIGEST_LENGTH]


def submit_vote(store,
                event_id: str,
                identity: str,
                allocations: Mapping[str, Any],
                now: Optional[datetime.datetime] = None,
                metadata: Optional[Dict[str, str]] = None,
                ) -> Vote:
    '''Validate an allocation and store it as the identity's vote.

    The allocation is validated strictly before anything is written, so if
    validation fails, the previously stored vote (if any) stays unchanged.

    :param store: A :class:`quadvote.store.EventStore`.
    :param event_id: ID of the event to vote in.
    :param identity: Invite code of the voter. The special code
        ``anonymous`` is replaced by an identity derived from the
        ``ip_address`` and ``user_agent`` metadata.
    :param allocations: Credits allocated to option IDs.
    :param now: Time of the submission; the current time by default.
    :param metadata: Client metadata (``ip_address``, ``user_agent``).
    :returns: The stored vote.
    :raises EventNotFoundError: If the store does not know the event.
    :raises VoteError: If the allocation is invalid.
    '''
    event = store.get_event(event_id)
    options = store.get_options(event_id)
    validator = AllocationValidator.for_event(event, options)
    if now is None:
        now = current_time(event.end_time)
    normalized = validator.validate(allocations, now)
    if identity == ANONYMOUS_CODE:
        metadata = metadata or {}
        identity = anonymous_identity(
            event_id, metadata.get('ip_address'), metadata.get('user_agent')
        )
    vote = Vote(
        invite_code=identity,
        allocations=normalized,
        submitted_at=now,
    )
    logger.info('accepted vote from %s in event %s spending %d credits',
                identity, event_id, vote.total_credits_used)
    return store.upsert_vote(event_id, vote)
