"""Workers that apply a per-value processor, optionally concurrently and in order."""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Iterable, NamedTuple

from .chan import Chan, ChannelClosed
from .node import _POLL, Worker, _loop_over, _Node, pooled
from .options import Concurrent, Ordered, _find_option

Processor = Callable[[Any], "tuple[Any, bool]"]


class _Entry(NamedTuple):
    index: int
    value: Any
    skip: bool


def pooled_worker(processor: Processor, options: Iterable[Any] = ()) -> Worker:
    """Build a worker that feeds every input value to processor.

    The processor returns ``(output, send)``; output is sent only when send is
    true. A Concurrent option runs several processors at once, and an Ordered
    option makes concurrent output keep the input order.
    """
    options = list(options)
    concurrency = _find_option(options, Concurrent, Concurrent(1)).concurrency
    ordered = _find_option(options, Ordered)

    if concurrency == 1:
        return _single_loop_worker(processor)
    if ordered is None:
        return pooled(_single_loop_worker(processor), options)
    return _ordered_worker(processor, concurrency, ordered.order_buffer_size)


def _single_loop_worker(processor: Processor) -> Worker:
    def run(node: _Node) -> None:
        def handle(value: Any) -> bool:
            output, send = processor(value)
            return node.send(output) if send else True

        node.loop_input(0, handle)

    return run


def _put(node: _Node, chan: Chan, value: Any) -> bool:
    """Send to chan unless the node is told to quit first."""
    while not node.quit.is_set():
        try:
            chan.send(value, timeout=_POLL)
            return True
        except TimeoutError:
            continue
        except ChannelClosed:
            return False
    return False


def _take(node: _Node, chan: Chan) -> bool:
    """Receive one value from chan unless the node is told to quit first."""
    while not node.quit.is_set():
        try:
            chan.receive(timeout=_POLL)
            return True
        except TimeoutError:
            continue
        except ChannelClosed:
            return False
    return False


class _OrderingBuffer:
    """Reorders processed entries by index before sending them on."""

    def __init__(self, node: _Node, concurrency: int, buffer_size: int) -> None:
        self._node = node
        self._input = Chan(buffer_size + concurrency)
        self._feedback = Chan(buffer_size)
        self._prefill = buffer_size
        self.done = threading.Event()

    def send(self, entry: _Entry) -> bool:
        return _put(self._node, self._input, entry) and _take(self._node, self._feedback)

    def start(self) -> None:
        threading.Thread(target=self._run, daemon=True).start()

    def stop(self) -> None:
        self._input.close()

    def _run(self) -> None:
        try:
            for _ in range(self._prefill):
                self._feedback.send(None)

            pending: dict[int, _Entry] = {}
            next_index = 0

            def accept(entry: _Entry) -> bool:
                nonlocal next_index
                pending[entry.index] = entry
                while next_index in pending:
                    ready = pending.pop(next_index)
                    if not ready.skip and not self._node.send(ready.value):
                        return False
                    next_index += 1
                    if not _put(self._node, self._feedback, None):
                        return False
                return True

            _loop_over(self._node, self._input, accept)
        except BaseException as exc:  # noqa: BLE001 - any failure cancels the pipeline
            self._node.fail(exc)
        finally:
            self.done.set()


def _ordered_worker(processor: Processor, concurrency: int, buffer_size: int) -> Worker:
    def run(node: _Node) -> None:
        internal = Chan()
        ordering = _OrderingBuffer(node, concurrency, buffer_size)

        def handle(entry: _Entry) -> bool:
            output, send = processor(entry.value)
            return ordering.send(_Entry(entry.index, output, not send))

        def work() -> None:
            try:
                _loop_over(node, internal, handle)
            except BaseException as exc:  # noqa: BLE001
                node.fail(exc)

        threads = [threading.Thread(target=work, daemon=True) for _ in range(concurrency)]
        for thread in threads:
            thread.start()
        ordering.start()

        counter = itertools.count()
        node.loop_input(0, lambda value: _put(node, internal, _Entry(next(counter), value, False)))
        internal.close()

        for thread in threads:
            thread.join()

        ordering.stop()
        ordering.done.wait()

    return run