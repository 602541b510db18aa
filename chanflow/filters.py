"""Operators that pass on only some of their input values."""

from __future__ import annotations

import itertools
from typing import Any, Callable, Hashable

from .node import Channel, _linear_node, _Node
from .processor import pooled_worker

_Handler = Callable[[Any], bool]


def _looping(channel: Channel, name: str, make_handler: Callable[[_Node], _Handler]) -> Channel:
    """A linear node that feeds every input value to a fresh handler until it returns False."""

    def worker(node: _Node) -> None:
        node.loop_input(0, make_handler(node))

    _, output = _linear_node(name, channel, worker)
    return output


def _require_count(n: int) -> None:
    if n < 0:
        raise ValueError("n must not be negative")


def filter_values(channel: Channel, predicate: Callable[[Any], bool], *args: Any) -> Channel:
    """Pass on the values that match predicate; accepts Concurrent and Ordered options."""
    worker = pooled_worker(lambda value: (value, predicate(value)), args)
    _, output = _linear_node("Filter", channel, worker)
    return output


def skip(channel: Channel, n: int) -> Channel:
    """Drop the first n values and pass on the rest."""
    _require_count(n)

    def make_handler(node: _Node) -> _Handler:
        seen = itertools.count()
        return lambda value: next(seen) < n or node.send(value)

    return _looping(channel, "Skip", make_handler)


def take(channel: Channel, n: int) -> Channel:
    """Pass on the first n values, then stop and close the output."""
    _require_count(n)

    def make_handler(node: _Node) -> _Handler:
        taken = itertools.count()
        return lambda value: next(taken) < n and node.send(value)

    return _looping(channel, "Take", make_handler)


def distinct(channel: Channel, get_key: Callable[[Any], Hashable]) -> Channel:
    """Pass on only values whose key has not been seen before."""

    def make_handler(node: _Node) -> _Handler:
        seen: set[Hashable] = set()

        def handle(value: Any) -> bool:
            key = get_key(value)
            if key in seen:
                return True
            seen.add(key)
            return node.send(value)

        return handle

    return _looping(channel, "Distinct", make_handler)