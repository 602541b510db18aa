"""Operators that pass values through unchanged with a side effect or delay."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

from .node import Channel, _linear_node, _Node
from .options import buffered
from .processor import pooled_worker


def _passing_through(effect: Optional[Callable[[Any], Any]] = None) -> Callable[[Any], tuple[Any, bool]]:
    """A processor that runs effect on each value and always passes the value on."""

    def process(value: Any) -> tuple[Any, bool]:
        if effect is not None:
            effect(value)
        return value, True

    return process


def buffer(channel: Channel, n: int) -> Channel:
    """Pass values through an output buffered to hold n values."""
    _, output = _linear_node("Buffer", channel, pooled_worker(_passing_through(), ()), [buffered(n)])
    return output


def tap(channel: Channel, function: Callable[[Any], Any], *args: Any) -> Channel:
    """Call function on every value, then pass it on; accepts Concurrent and Ordered options."""
    _, output = _linear_node("Tap", channel, pooled_worker(_passing_through(function), args))
    return output


def interval(channel: Channel, interval: Callable[[Any], float]) -> Channel:
    """Pass values on, waiting interval(value) seconds after each before sending the next."""

    def worker(node: _Node) -> None:
        ready_at = time.monotonic()

        def handle(value: Any) -> bool:
            nonlocal ready_at
            if node.quit.wait(max(0.0, ready_at - time.monotonic())) or not node.send(value):
                return False
            ready_at = time.monotonic() + interval(value)
            return True

        node.loop_input(0, handle)

    _, output = _linear_node("Interval", channel, worker)
    return output