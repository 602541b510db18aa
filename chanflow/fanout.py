"""Operators that send one channel's values to several outputs."""

from __future__ import annotations

from typing import Any

from .node import Channel, _new_node, _Node


def _forward(node: _Node) -> None:
    node.loop_input(0, node.send)


def split(channel: Channel, num_outputs: int, *args: Any) -> list[Channel]:
    """Send each value to any one of num_outputs outputs; accepts a Buffered option."""
    _, outputs = _new_node("Split", channel.pipeline, [channel], num_outputs, _forward, True, args)
    return outputs


def broadcast(channel: Channel, num_outputs: int, *args: Any) -> list[Channel]:
    """Send each value to every one of num_outputs outputs; accepts a Buffered option.

    The next value is read only once every output has taken the current one,
    so a slow consumer holds back the others unless the outputs are buffered.
    """
    _, outputs = _new_node("Broadcast", channel.pipeline, [channel], num_outputs, _forward, False, args)
    return outputs