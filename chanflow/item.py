"""A value-or-error carrier for pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Item(Generic[T]):
    """Holds a value or an error, plus a context enriched along the pipeline."""

    value: T | None = None
    error: BaseException | None = None
    ctx: Any = None


def item(value: T, error: BaseException | None = None, ctx: Any = None) -> Item[T]:
    return Item(value, error, ctx)


def value_item(value: T) -> Item[T]:
    return Item(value=value)


def error_item(error: BaseException) -> Item[Any]:
    return Item(error=error)