"""Small helpers: CPU count, panic-safe calls and a coalescing notifier."""

from __future__ import annotations

import os
import threading
from concurrent.futures import Future
from typing import Callable, Optional

from .errors import VarmqError


class PanicError(VarmqError):
    """An exception escaped from a function run under ``with_safe``."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"panic recovered inside {name}: {cause}")
        self.name = name
        self.__cause__ = cause


def cpus() -> int:
    """Return the number of logical CPUs available."""
    return os.cpu_count() or 1


def with_safe(name: str, fn: Callable[[], object]) -> Optional[PanicError]:
    """Run ``fn`` and return a PanicError if it raised, otherwise None."""
    try:
        fn()
    except Exception as exc:  # noqa: BLE001 - any failure is reported back
        return PanicError(name, exc)
    return None


def go_with_safe(name: str, fn: Callable[[], object]) -> "Future[Optional[PanicError]]":
    """Run ``fn`` in a background thread; the future resolves to its PanicError or None."""
    future: "Future[Optional[PanicError]]" = Future()

    def run() -> None:
        future.set_result(with_safe(name, fn))

    threading.Thread(target=run, name=name, daemon=True).start()
    return future


class Notifier:
    """A bounded signal buffer: sends never block and surplus signals are dropped."""

    def __init__(self, buffer_size: int = 1) -> None:
        if buffer_size < 0:
            raise ValueError("buffer size must not be negative")
        self._capacity = buffer_size
        self._pending = 0
        self._waiting = 0
        self._closed = False
        self._cond = threading.Condition()

    def __len__(self) -> int:
        with self._cond:
            return self._pending

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self) -> None:
        """Post a signal unless the buffer is full; raise if the notifier is closed."""
        with self._cond:
            if self._closed:
                raise RuntimeError("send on closed notifier")
            if self._pending < self._capacity + self._waiting:
                self._pending += 1
                self._cond.notify()

    def _take(self) -> bool:
        with self._cond:
            while self._pending == 0 and not self._closed:
                self._waiting += 1
                try:
                    self._cond.wait()
                finally:
                    self._waiting -= 1
            if self._pending:
                self._pending -= 1
                return True
            return False

    def receive(self, fn: Callable[[], object]) -> None:
        """Call ``fn`` once per signal until the notifier is closed and drained."""
        while self._take():
            fn()

    def close(self) -> None:
        """Close the notifier; receivers finish after draining pending signals."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()