"""Load and save event snapshots as JSON documents.

A snapshot contains everything needed to compute the results of a single
event::

    {
        "event": {
            "id": "budget-2024",
            "title": "Community budget",
            "start_time": "2024-03-01T00:00:00+00:00",
            "end_time": "2024-03-15T00:00:00+00:00",
            "credits_per_voter": 100,
            "decision_framework": {
                "framework_type": "binary_selection",
                "config": {"threshold_mode": "top_n", "top_n_count": 2,
                           "tiebreaker": "alphabetical"}
            }
        },
        "options": [{"id": "A", "title": "Park", "position": 0}, ...],
        "votes": [{"invite_code": "X7K2", "allocations": {"A": 100}}, ...]
    }

Timestamps are ISO 8601 strings; a trailing ``Z`` is accepted for UTC.
The decision framework is kept in its dictionary form and parsed when the
results are computed. Votes are taken as stored without checking them
against the options or the credit budget, but their credit values must be
non-negative whole numbers.
"""

import datetime
import json
from typing import Any, Dict, Iterable, Mapping, Optional

import quadvote.io.core
import quadvote.persist
import quadvote.util
from quadvote.io.core import EventSnapshot, ParseError
from quadvote.option import Event, Option, Vote


def parse(text: str) -> EventSnapshot:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f'invalid JSON: {e}') from e
    if not isinstance(document, dict):
        raise ParseError('snapshot must be a JSON object')
    event = _parse_event(_get(document, 'event', dict))
    options = [
        _parse_option(item, i)
        for i, item in enumerate(_get(document, 'options', list, []))
    ]
    votes = [_parse_vote(item) for item in _get(document, 'votes', list, [])]
    return EventSnapshot(event=event, options=options, votes=votes)


load, loads = quadvote.io.core.loaders(parse)


def dump_lines(snapshot: EventSnapshot, indent: int = 2) -> Iterable[str]:
    document = {
        'event': snapshot.event.to_dict(),
        'options': [opt.to_dict() for opt in snapshot.options],
        'votes': [vote.to_dict() for vote in snapshot.votes],
    }
    yield from json.dumps(
        quadvote.persist.serialize_value(document),
        indent=indent,
        ensure_ascii=False,
    ).split('\n')


dump, dumps = quadvote.io.core.dumpers(dump_lines)


def parse_timestamp(value: Any) -> datetime.datetime:
    '''Parse an ISO 8601 timestamp.

    :raises ParseError: If the value is not a valid timestamp string.
    '''
    if not isinstance(value, str):
        raise ParseError(f'invalid timestamp: {value!r}')
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    try:
        return datetime.datetime.fromisoformat(value)
    except ValueError as e:
        raise ParseError(f'invalid timestamp: {value!r}') from e


def _get(document: Mapping[str, Any],
         key: str,
         type_: Any,
         default: Any = NotImplemented,
         ) -> Any:
    if key not in document or document[key] is None:
        if default is NotImplemented:
            raise ParseError(f'missing required key: {key}')
        return default
    value = document[key]
    if not isinstance(value, type_) or isinstance(value, bool):
        raise ParseError(f'invalid {key}: {value!r}')
    return value


def _credits(value: Any, name: str) -> int:
    if not quadvote.util.is_whole_number(value) or value < 0:
        raise ParseError(f'invalid {name}: {value!r}')
    return int(value)


def _optional_timestamp(document: Mapping[str, Any],
                        key: str,
                        ) -> Optional[datetime.datetime]:
    value = document.get(key)
    return None if value is None else parse_timestamp(value)


def _parse_event(document: Dict[str, Any]) -> Event:
    kwargs = {}
    if 'credits_per_voter' in document:
        kwargs['credits_per_voter'] = _get(document, 'credits_per_voter', int)
    return Event(
        id=str(_get(document, 'id', (str, int))),
        title=document.get('title'),
        start_time=parse_timestamp(_get(document, 'start_time', str)),
        end_time=parse_timestamp(_get(document, 'end_time', str)),
        decision_framework=_get(document, 'decision_framework', dict),
        **kwargs
    )


def _parse_option(document: Any, index: int) -> Option:
    if not isinstance(document, dict):
        raise ParseError(f'invalid option: {document!r}')
    return Option(
        id=str(_get(document, 'id', (str, int))),
        title=_get(document, 'title', str),
        position=_get(document, 'position', int, index),
        created_at=_optional_timestamp(document, 'created_at'),
    )


def _parse_vote(document: Any) -> Vote:
    if not isinstance(document, dict):
        raise ParseError(f'invalid vote: {document!r}')
    allocations = {
        str(key): _credits(credits, f'credits for option {key}')
        for key, credits in _get(document, 'allocations', dict).items()
    }
    total = document.get('total_credits_used')
    if total is not None:
        total = _credits(total, 'total_credits_used')
    return Vote(
        invite_code=_get(document, 'invite_code', str),
        allocations=allocations,
        total_credits_used=total,
        submitted_at=_optional_timestamp(document, 'submitted_at'),
        updated_at=_optional_timestamp(document, 'updated_at'),
    )
