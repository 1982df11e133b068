"""A pool slot: a small job channel served by one worker thread."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Deque, Generic, Iterator, Optional, TypeVar

from .errors import VarmqError

J = TypeVar("J")


class PoolClosedError(VarmqError):
    """A job was handed to a pool node that has been closed."""

    default_message = "pool node is closed"


class PoolNode(Generic[J]):
    """A bounded channel of jobs plus the time it was last used.

    Iterating yields jobs until the node is closed and drained.
    ``last_used`` is a ``time.monotonic()`` value, or None if never used.
    """

    def __init__(self, buffer_size: int = 1) -> None:
        if buffer_size < 0:
            raise ValueError("buffer size must not be negative")
        self._capacity = buffer_size
        self._buffer: Deque[J] = deque()
        self._waiting = 0
        self._closed = False
        self._cond = threading.Condition()
        self.last_used: Optional[float] = None

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def put(self, job: J) -> None:
        """Hand ``job`` to the node, blocking while its buffer is full."""
        with self._cond:
            while not self._closed and len(self._buffer) >= self._capacity + self._waiting:
                self._cond.wait()
            if self._closed:
                raise PoolClosedError()
            self._buffer.append(job)
            self._cond.notify_all()

    def _take(self) -> Optional[J]:
        with self._cond:
            while not self._buffer and not self._closed:
                self._waiting += 1
                self._cond.notify_all()
                try:
                    self._cond.wait()
                finally:
                    self._waiting -= 1
            if self._buffer:
                job = self._buffer.popleft()
                self._cond.notify_all()
                return job
            raise StopIteration

    def __iter__(self) -> Iterator[J]:
        while True:
            try:
                yield self._take()  # type: ignore[misc]
            except StopIteration:
                return

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def update_last_used(self) -> None:
        self.last_used = time.monotonic()