"""Operators that transform values into other values."""

from __future__ import annotations

import time
from typing import Any, Callable

from .chan import ChannelClosed
from .item import Item
from .node import _POLL, Channel, _linear_node, _Node, pooled
from .processor import pooled_worker


def map_values(channel: Channel, mapper: Callable[[Any], Any], *args: Any) -> Channel:
    """Send mapper(value) for every value; accepts Concurrent and Ordered options."""
    worker = pooled_worker(lambda value: (mapper(value), True), args)
    _, output = _linear_node("Map", channel, worker, args)
    return output


def flat_map(channel: Channel, mapper: Callable[[Any], Channel], *args: Any) -> Channel:
    """Map every value to a channel and send on all of that channel's values.

    Accepts a Concurrent option.
    """

    def worker(node: _Node) -> None:
        def handle(value: Any) -> bool:
            mapped = mapper(value)
            for output in mapped._chan:
                if not node.send(output):
                    mapped._unsubscribe()
                    return False
            return True

        node.loop_input(0, handle)

    _, output = _linear_node("FlatMap", channel, pooled(worker, args), args)
    return output


def batch(channel: Channel, size: int, timeout: float) -> Channel:
    """Group values into lists limited by size and by timeout in seconds.

    A size or timeout of 0 leaves that limit off.
    """

    def next_deadline() -> float | None:
        return time.monotonic() + timeout if timeout > 0 else None

    def worker(node: _Node) -> None:
        source = node.inputs[0]._chan
        current: list[Any] = []
        deadline = next_deadline()
        while True:
            flush = done = False
            if node.quit.is_set():
                flush = done = True
            else:
                wait = _POLL if deadline is None else max(0.0, min(_POLL, deadline - time.monotonic()))
                try:
                    value = source.receive(timeout=wait)
                except TimeoutError:
                    if deadline is None or time.monotonic() < deadline:
                        continue
                    flush = True
                except ChannelClosed:
                    flush = done = True
                else:
                    current.append(value)
                    if len(current) == size:
                        flush = True

            if flush:
                if not node.send(current):
                    return
                current = []
                deadline = next_deadline()
            if done:
                return

    _, output = _linear_node("Batch", channel, worker)
    return output


def wrap(channel: Channel) -> Channel:
    """Wrap every value in an Item."""

    def worker(node: _Node) -> None:
        node.loop_input(0, lambda value: node.send(Item(value=value)))

    _, output = _linear_node("Wrap", channel, worker)
    return output