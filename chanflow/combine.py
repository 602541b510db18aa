"""Operators that combine several channels into one."""

from __future__ import annotations

import threading
from typing import Any

from .node import Channel, _new_node, _Node


def merge(*args: Channel) -> Channel:
    """Send values from all channels to one output as they arrive."""
    if not args:
        raise ValueError("merge needs at least one channel")
    inputs = list(args)

    def worker(node: _Node) -> None:
        def consume(index: int) -> None:
            try:
                node.loop_input(index, node.send)
            except BaseException as exc:  # noqa: BLE001
                node.fail(exc)

        threads = [
            threading.Thread(target=consume, args=(index,), daemon=True)
            for index in range(len(inputs))
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    _, outputs = _new_node("Merge", inputs[0].pipeline, inputs, 1, worker)
    return outputs[0]


def concat(*args: Channel) -> Channel:
    """Send all values of each channel in turn, one channel after another."""
    if not args:
        raise ValueError("concat needs at least one channel")
    inputs = list(args)

    def worker(node: _Node) -> None:
        for index, _ in enumerate(inputs):
            node.loop_input(index, node.send)

    _, outputs = _new_node("Concat", inputs[0].pipeline, inputs, 1, worker)
    return outputs[0]


__all__: list[Any] = ["merge", "concat"]