"""Operators that consume a channel and produce a final result."""

from __future__ import annotations

import threading
from typing import Any, Callable, Hashable, Optional, Sequence

from .chan import Chan
from .node import Channel, _Node, _sink_node, pooled
from .options import Keep, KeepStrategy, _find_option, keep_first
from .processor import _put


def _result(node: _Node, deliver: Callable[[Chan], None]) -> Chan:
    """A one-slot channel that deliver fills once node is done."""
    result = Chan(1)

    def run() -> None:
        node.done.wait()
        deliver(result)

    threading.Thread(target=run, daemon=True).start()
    return result


def _send_state(result: Chan, state: Any) -> None:
    result.send(state)


def _folding_sink(
    name: str,
    channel: Channel,
    step: Callable[[Any, Any], Any],
    initial: Any,
    *,
    stop_when: Optional[Callable[[Any], bool]] = None,
    deliver: Callable[[Chan, Any], None] = _send_state,
    options: Sequence[Any] = (),
) -> Chan:
    """Fold the input with step, then hand the final state to deliver.

    Reading stops early once stop_when(state) is true.
    """
    state = initial

    def worker(node: _Node) -> None:
        def handle(value: Any) -> bool:
            nonlocal state
            state = step(state, value)
            return stop_when is None or not stop_when(state)

        node.loop_input(0, handle)

    node = _sink_node(name, channel, worker, options)
    return _result(node, lambda result: deliver(result, state))


def for_each(channel: Channel, function: Callable[[Any], Any], *args: Any) -> threading.Event:
    """Call function for every value; accepts a Concurrent option.

    The returned event is set once all values are processed or the pipeline
    is canceled.
    """

    def worker(node: _Node) -> None:
        def handle(value: Any) -> bool:
            function(value)
            return True

        node.loop_input(0, handle)

    node = _sink_node("ForEach", channel, pooled(worker, args), args)
    return node.done


def reduce(channel: Channel, reducer: Callable[[Any, Any], Any], initial: Any = None) -> Chan:
    """Fold the values with reducer, starting from initial; the final state goes to the result."""
    return _folding_sink("Reduce", channel, reducer, initial)


def to_list(channel: Channel) -> Chan:
    """Collect every value into a list, sent to the result when done.

    The list may be partial if the pipeline failed; check its error.
    """

    def append(values: list[Any], value: Any) -> list[Any]:
        values.append(value)
        return values

    return _folding_sink("ToList", channel, append, [])


def to_dict(channel: Channel, get_key: Callable[[Any], Hashable], *args: Any) -> Chan:
    """Collect values into a dict keyed by get_key; a Keep option picks which value wins."""
    keep = _find_option(args, Keep, keep_first())

    def insert(mapping: dict[Hashable, Any], value: Any) -> dict[Hashable, Any]:
        key = get_key(value)
        if keep.strategy is not KeepStrategy.KEEP_FIRST or key not in mapping:
            mapping[key] = value
        return mapping

    return _folding_sink("ToDict", channel, insert, {}, options=args)


def to_chan(channel: Channel) -> Chan:
    """Forward every value to a plain channel that closes when the input is done."""
    out = Chan()

    def worker(node: _Node) -> None:
        node.loop_input(0, lambda value: _put(node, out, value))

    node = _sink_node("ToChan", channel, worker)

    def close_when_done() -> None:
        node.done.wait()
        out.close()

    threading.Thread(target=close_when_done, daemon=True).start()
    return out


def last(channel: Channel) -> Chan:
    """Send the last value seen to the result; close the result if there was none."""

    def deliver(result: Chan, seen: tuple[Any, ...]) -> None:
        if seen:
            result.send(seen[0])
        else:
            result.close()

    return _folding_sink("Last", channel, lambda _, value: (value,), (), deliver=deliver)


def count(channel: Channel) -> Chan:
    """Count the values and send the count to the result."""
    return _folding_sink("Count", channel, lambda total, _: total + 1, 0)


def any_match(channel: Channel, predicate: Callable[[Any], bool]) -> Chan:
    """Send True as soon as a value matches predicate, else False once done."""
    return _folding_sink(
        "Any", channel, lambda _, value: bool(predicate(value)), False, stop_when=bool
    )


def all_match(channel: Channel, predicate: Callable[[Any], bool]) -> Chan:
    """Send False as soon as a value fails predicate, else True once done."""
    return _folding_sink(
        "All",
        channel,
        lambda _, value: bool(predicate(value)),
        True,
        stop_when=lambda matched: not matched,
    )


def none_match(channel: Channel, predicate: Callable[[Any], bool]) -> Chan:
    """Send False as soon as a value matches predicate, else True once done."""
    return _folding_sink(
        "None",
        channel,
        lambda _, value: not predicate(value),
        True,
        stop_when=lambda clear: not clear,
    )