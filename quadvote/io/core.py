"""Shared functionality for event snapshot file I/O. Internal."""

from __future__ import annotations

import dataclasses
import typing
from typing import Any, List, Callable, Iterable, Iterator, TextIO, Tuple

import quadvote.store
from quadvote.option import Event, Option, Vote


class ParseError(Exception):
    """An input that is invalid according to the given format was detected."""
    pass


@dataclasses.dataclass
class EventSnapshot:
    """A container for the data of a single event read from a file."""
    event: Event
    options: List[Option] = dataclasses.field(default_factory=list)
    votes: List[Vote] = dataclasses.field(default_factory=list)

    def to_store(self) -> quadvote.store.MemoryEventStore:
        """Create an in-memory event store holding the snapshot."""
        return quadvote.store.MemoryEventStore(
            events=[self.event],
            options={self.event.id: self.options},
            votes={self.event.id: self.votes},
        )


def loaders(text_parser: Callable[..., Any]
            ) -> Tuple[Callable[..., Any], Callable[..., Any]]:
    """Create load() and loads() functions from a text parsing function.

    The whole input is read before parsing; snapshots are single documents.
    """
    return_annot = typing.get_type_hints(text_parser).get('return', Any)

    def load(file: TextIO, **kwargs) -> return_annot:
        return text_parser(file.read(), **kwargs)

    def loads(text: str, **kwargs) -> return_annot:
        return text_parser(text, **kwargs)

    return load, loads


def dumpers(line_dumper: Callable[..., Iterable[str]]
            ) -> Tuple[Callable[..., None], Callable[..., str]]:
    """Create dump() and dumps() functions from a line generator function."""

    def dump(file: TextIO, *args, **kwargs) -> None:
        file.writelines(_terminated(line_dumper(*args, **kwargs)))

    def dumps(*args, **kwargs) -> str:
        return ''.join(_terminated(line_dumper(*args, **kwargs)))

    return dump, dumps


def _terminated(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        yield line if line.endswith('\n') else line + '\n'
