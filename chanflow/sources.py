"""Operators that create channels from outside values."""

from __future__ import annotations

import itertools
from typing import Any, Callable, Iterable

from .chan import Chan
from .node import Channel, _loop_over, _Node, _source_node
from .pipeline import Pipeline


def _emit_all(pipeline: Pipeline, name: str, values: Iterable[Any]) -> Channel:
    def worker(node: _Node) -> None:
        for value in values:
            if not node.send(value):
                return

    _, output = _source_node(name, pipeline, worker)
    return output


def from_chan(pipeline: Pipeline, chan: Chan) -> Channel:
    """A channel carrying every value received from chan until it closes."""

    def worker(node: _Node) -> None:
        _loop_over(node, chan, node.send)

    _, output = _source_node("FromChan", pipeline, worker)
    return output


def from_iterable(pipeline: Pipeline, iterable: Iterable[Any]) -> Channel:
    """A channel carrying the values of iterable in order."""
    return _emit_all(pipeline, "FromIterable", iterable)


def from_range(pipeline: Pipeline, start: int, end: int) -> Channel:
    """A channel carrying the integers from start to end, both inclusive."""
    return _emit_all(pipeline, "FromRange", range(start, end + 1))


def from_generator(pipeline: Pipeline, generator: Callable[[int], Any]) -> Channel:
    """A channel carrying generator(0), generator(1), ... without end."""
    return _emit_all(pipeline, "FromGenerator", map(generator, itertools.count()))