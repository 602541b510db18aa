"""The pipeline that coordinates operators and their cancellation."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable


class Canceled(Exception):
    """The pipeline's context was canceled."""


@dataclass
class Config:
    """Pipeline settings.

    ``context`` is an event-like object (``wait``/``is_set``); once set, the
    pipeline is canceled. With ``start_manually`` the pipeline waits for
    :meth:`Pipeline.start` instead of starting at the first sink.
    """

    context: Any = None
    start_manually: bool = False


class Pipeline:
    """Container for a set of connected operators; safe to use from many threads."""

    def __init__(self, config: Config | None = None) -> None:
        config = config or Config()
        self._watch_context = config.context is not None
        self._context = config.context if config.context is not None else threading.Event()
        self._start_manually = config.start_manually
        self._lock = threading.Lock()
        self._started = False
        self._done = threading.Event()
        self._err: BaseException | None = None
        self._nodes: list[Any] = []
        self._callbacks: list[Callable[[], None]] = []

    def start(self) -> None:
        """Start all operators; has no effect when already started."""
        with self._lock:
            if self._started:
                return
            self._started = True
            nodes = list(self._nodes)

        if self._watch_context:
            threading.Thread(target=self._watch, daemon=True).start()
        for node in nodes:
            node.start()
        threading.Thread(target=self._await_nodes, args=(nodes,), daemon=True).start()

    def _watch(self) -> None:
        while not self._done.is_set():
            if self._context.wait(0.002):
                self.cancel(Canceled("context canceled"))
                return

    def _await_nodes(self, nodes: list[Any]) -> None:
        for node in nodes:
            node.done.wait()
        self.cancel(None)

    def cancel(self, err: BaseException | None = None) -> None:
        """Cancel the pipeline, recording err if given."""
        with self._lock:
            if self._done.is_set():
                return
            if err is not None:
                self._err = err
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def error(self) -> BaseException | None:
        """The error the pipeline failed with, or None."""
        return self._err

    def is_done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the pipeline to finish; return whether it did."""
        return self._done.wait(timeout)

    def context(self) -> Any:
        return self._context

    def _on_done(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def _add_node(self, node: Any) -> None:
        with self._lock:
            started = self._started
            if not started:
                self._nodes.append(node)
            auto_start = node.is_sink and not self._start_manually
        if started:
            node.start()
        elif auto_start:
            self.start()


def new(ctx: Any = None) -> Pipeline:
    """A pipeline backed by ctx that starts at its first sink."""
    return Pipeline(Config(context=ctx))


def new_pipeline(config: Config | None = None) -> Pipeline:
    return Pipeline(config)