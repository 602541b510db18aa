"""A thread-safe channel with optional buffering."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any, Callable, Iterator


class ChannelClosed(Exception):
    """Raised when sending to, or receiving from an empty, closed channel."""


def _remaining(deadline: float | None) -> float | None:
    return None if deadline is None else max(0.0, deadline - time.monotonic())


class Chan:
    """A channel; with capacity 0 a send completes only when a receiver takes the value."""

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.capacity = capacity
        self._items: deque[Any] = deque()
        self._closed = False
        self._cond = threading.Condition()
        self._put = 0
        self._taken = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items) if self.capacity else 0

    def _wait(self, predicate: Callable[[], bool], deadline: float | None, action: str) -> None:
        if not self._cond.wait_for(predicate, _remaining(deadline)):
            raise TimeoutError(f"{action} timed out")

    def _ensure_open(self) -> None:
        if self._closed:
            raise ChannelClosed("send on closed channel")

    def _has_room(self) -> bool:
        if self.capacity:
            return len(self._items) < self.capacity
        return not self._items

    def send(self, value: Any, timeout: float | None = None) -> None:
        """Send a value; raise TimeoutError if it cannot be delivered in time."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            self._wait(lambda: self._closed or self._has_room(), deadline, "send")
            self._ensure_open()
            self._items.append(value)
            self._cond.notify_all()
            if self.capacity:
                return

            ticket = self._put
            self._put += 1
            self._cond.wait_for(lambda: self._taken > ticket or self._closed, _remaining(deadline))
            if self._taken > ticket:
                return
            # Nobody took the value: withdraw it before reporting the failure.
            self._items.popleft()
            self._put -= 1
            self._cond.notify_all()
            self._ensure_open()
            raise TimeoutError("send timed out")

    def receive(self, timeout: float | None = None) -> Any:
        """Receive a value; raise ChannelClosed once closed and drained."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            self._wait(lambda: bool(self._items) or self._closed, deadline, "receive")
            if not self._items:
                raise ChannelClosed("channel closed")
            value = self._items.popleft()
            self._taken += 1
            self._cond.notify_all()
            return value

    def close(self) -> None:
        with self._cond:
            if self._closed:
                raise ChannelClosed("close of closed channel")
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                yield self.receive()
            except ChannelClosed:
                return