"""Channels between operators and the nodes that run operator workers."""

from __future__ import annotations

import functools
import threading
import traceback
from typing import Any, Callable, Iterable, Sequence

from .chan import Chan, ChannelClosed
from .options import Buffered, Concurrent, _find_option
from .pipeline import Pipeline

_POLL = 0.002

Worker = Callable[["_Node"], None]


class Channel:
    """A stream of values flowing out of one operator into at most one other."""

    def __init__(self, pipeline: Pipeline, chan: Chan, unsubscriber: Callable[[], None]) -> None:
        self.pipeline = pipeline
        self._chan = chan
        self._unsubscriber = unsubscriber
        self._to_node: _Node | None = None
        self._lock = threading.Lock()

    def _unsubscribe(self) -> None:
        self._unsubscriber()

    def _set_to_node(self, node: "_Node") -> None:
        with self._lock:
            if self._to_node is not None:
                raise RuntimeError("Can't subscribe more than one operator to a Channel")
            self._to_node = node


class _Node:
    """Runs a worker that reads input channels and writes output channels."""

    def __init__(
        self,
        node_type: str,
        pipeline: Pipeline,
        inputs: Sequence[Channel],
        num_outputs: int,
        worker: Worker,
        shared_output: bool,
        size: int,
    ) -> None:
        self.node_type = node_type
        self.pipeline = pipeline
        self.inputs = list(inputs)
        self._worker = worker
        self._lock = threading.Lock()
        self.quit = threading.Event()
        self.done = threading.Event()
        self._all_unsubscribed = threading.Event()
        self._subscriptions = [threading.Event() for _ in range(num_outputs)]

        if shared_output:
            shared = Chan(size)
            self._writers = [shared]
            chans = [shared] * num_outputs
        else:
            chans = [Chan(size) for _ in range(num_outputs)]
            self._writers = chans
        self.outputs = [
            Channel(pipeline, chan, functools.partial(self._unsubscribe, i))
            for i, chan in enumerate(chans)
        ]
        for channel in self.inputs:
            channel._set_to_node(self)
        pipeline._on_done(self.quit.set)

    @property
    def is_source(self) -> bool:
        return not self.inputs

    @property
    def is_sink(self) -> bool:
        return not self.outputs

    @property
    def children(self) -> list["_Node | None"]:
        return [output._to_node for output in self.outputs]

    def start(self) -> None:
        threading.Thread(target=self._run, daemon=True).start()

    def _run(self) -> None:
        try:
            self._worker(self)
        except BaseException as exc:  # noqa: BLE001 - any failure cancels the pipeline
            self.fail(exc)
        finally:
            for writer in self._writers:
                writer.close()
            for channel in self.inputs:
                channel._unsubscribe()
            self.done.set()

    def fail(self, exc: BaseException) -> None:
        """Cancel the pipeline with exc and its traceback."""
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.pipeline.cancel(RuntimeError(f"{exc}: {trace}"))

    def loop_input(self, index: int, function: Callable[[Any], bool]) -> None:
        """Feed values of input index to function until it returns False."""
        _loop_over(self, self.inputs[index]._chan, function)

    def send(self, value: Any) -> bool:
        """Send to the outputs; return whether any subscriber took the value."""
        if len(self._writers) == 1 and len(self.outputs) > 1:
            while True:
                if self.quit.is_set() or self._all_unsubscribed.is_set():
                    return False
                try:
                    self._writers[0].send(value, timeout=_POLL)
                    return True
                except TimeoutError:
                    continue
                except ChannelClosed:
                    return False

        success = False
        for writer, subscription in zip(self._writers, self._subscriptions):
            while True:
                if self.quit.is_set():
                    return False
                if subscription.is_set():
                    break
                try:
                    writer.send(value, timeout=_POLL)
                except TimeoutError:
                    continue
                except ChannelClosed:
                    return False
                success = True
                break
        return success

    def _unsubscribe(self, index: int) -> None:
        with self._lock:
            if self._subscriptions[index].is_set():
                return
            self._subscriptions[index].set()
            if not all(s.is_set() for s in self._subscriptions):
                return
            self._all_unsubscribed.set()
        for channel in self.inputs:
            channel._unsubscribe()
        self.quit.set()


def _loop_over(node: _Node, chan: Chan, function: Callable[[Any], bool]) -> None:
    while not node.quit.is_set():
        try:
            value = chan.receive(timeout=_POLL)
        except TimeoutError:
            continue
        except ChannelClosed:
            return
        if not function(value):
            return


def pooled(worker: Worker, options: Iterable[Any] = ()) -> Worker:
    """Run worker on several threads at once when a Concurrent option asks for it."""
    concurrency = _find_option(options, Concurrent, Concurrent(1)).concurrency
    if concurrency == 1:
        return worker

    def run(node: _Node) -> None:
        def guarded() -> None:
            try:
                worker(node)
            except BaseException as exc:  # noqa: BLE001
                node.fail(exc)

        threads = [threading.Thread(target=guarded, daemon=True) for _ in range(concurrency)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    return run


def _new_node(
    node_type: str,
    pipeline: Pipeline,
    inputs: Sequence[Channel],
    num_outputs: int,
    worker: Worker,
    shared_output: bool = False,
    options: Iterable[Any] = (),
) -> tuple[_Node, list[Channel]]:
    size = _find_option(options, Buffered, Buffered(0)).size
    node = _Node(node_type, pipeline, inputs, num_outputs, worker, shared_output, size)
    pipeline._add_node(node)
    return node, node.outputs


def _linear_node(node_type: str, channel: Channel, worker: Worker, options: Iterable[Any] = ()) -> tuple[_Node, Channel]:
    node, outputs = _new_node(node_type, channel.pipeline, [channel], 1, worker, False, options)
    return node, outputs[0]


def _source_node(node_type: str, pipeline: Pipeline, worker: Worker, options: Iterable[Any] = ()) -> tuple[_Node, Channel]:
    node, outputs = _new_node(node_type, pipeline, [], 1, worker, False, options)
    return node, outputs[0]


def _sink_node(node_type: str, channel: Channel, worker: Worker, options: Iterable[Any] = ()) -> _Node:
    node, _ = _new_node(node_type, channel.pipeline, [channel], 0, worker, False, options)
    return node