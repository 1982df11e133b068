"""Job results and the buffered channel that delivers them."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Generic, Iterator, Optional, TypeVar

from .errors import ResultConsumedError

R = TypeVar("R")


@dataclass(frozen=True)
class Result(Generic[R]):
    """The outcome of a job: its data, or the error it failed with."""

    job_id: str = ""
    data: Any = None
    err: Optional[BaseException] = None


class ResultChannel(Generic[R]):
    """A bounded, closable channel of results that may be read once."""

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._capacity = capacity
        self._buffer: Deque[Result[R]] = deque()
        self._waiting = 0
        self._closed = False
        self._consumed = False
        self._cond = threading.Condition()

    def __len__(self) -> int:
        with self._cond:
            return len(self._buffer)

    @property
    def is_closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, result: Result[R]) -> None:
        """Deliver ``result``, blocking while the buffer is full; raise if closed."""
        with self._cond:
            while not self._closed and len(self._buffer) >= self._capacity + self._waiting:
                self._cond.wait()
            if self._closed:
                raise RuntimeError("send on closed result channel")
            self._buffer.append(result)
            self._cond.notify_all()

    def get(self) -> Optional[Result[R]]:
        """Block for the next result; return None once closed and drained."""
        with self._cond:
            while not self._buffer and not self._closed:
                self._waiting += 1
                self._cond.notify_all()
                try:
                    self._cond.wait()
                finally:
                    self._waiting -= 1
            if self._buffer:
                result = self._buffer.popleft()
                self._cond.notify_all()
                return result
            return None

    def _iterate(self) -> Iterator[Result[R]]:
        while True:
            result = self.get()
            if result is None:
                return
            yield result

    def read(self) -> Iterator[Result[R]]:
        """Return an iterator over the results; raise if already read."""
        with self._cond:
            if self._consumed:
                raise ResultConsumedError()
            self._consumed = True
        return self._iterate()

    def close(self) -> None:
        """Close the channel; buffered results can still be received."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()