"""Options that tune how pipeline operators run."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Concurrent:
    """Number of workers an operator runs in parallel."""

    concurrency: int


@dataclass(frozen=True)
class Ordered:
    """Keep input order on output when running concurrently."""

    order_buffer_size: int


@dataclass(frozen=True)
class Buffered:
    """Capacity of an operator's output channels."""

    size: int


class KeepStrategy(str, enum.Enum):
    """Which value to keep when keys collide."""

    KEEP_FIRST = "KEEP_FIRST"
    KEEP_LAST = "KEEP_LAST"


@dataclass(frozen=True)
class Keep:
    """Key collision strategy for dictionary sinks."""

    strategy: KeepStrategy


def concurrent(concurrency: int) -> Concurrent:
    return Concurrent(concurrency)


def ordered(order_buffer_size: int) -> Ordered:
    return Ordered(order_buffer_size)


def buffered(size: int) -> Buffered:
    return Buffered(size)


def keep_first() -> Keep:
    return Keep(KeepStrategy.KEEP_FIRST)


def keep_last() -> Keep:
    return Keep(KeepStrategy.KEEP_LAST)


def _find_option(options: Iterable[Any], kind: type[T], default: T | None = None) -> T | None:
    """Return the first option of the given kind, or the default."""
    return next((opt for opt in options if isinstance(opt, kind)), default)