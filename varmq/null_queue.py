"""A queue that keeps nothing, used before a worker is bound to a real queue."""

from __future__ import annotations

import threading
from typing import Any, List, Optional

_default_null_queue: Optional["NullQueue"] = None


class NullQueue:
    """Counts enqueues and dequeues but stores no items."""

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return max(self._count, 0)

    def enqueue(self, item: Any) -> bool:
        """Count the item and report that it was not accepted."""
        with self._lock:
            self._count += 1
        return False

    def dequeue(self) -> Any:
        """Uncount one item; always raise IndexError since nothing is stored."""
        with self._lock:
            self._count -= 1
        raise IndexError("null queue holds no items")

    def values(self) -> List[Any]:
        return []

    def purge(self) -> None:
        with self._lock:
            self._count = 0

    def close(self) -> None:
        self.purge()


def get_null_queue() -> NullQueue:
    """Return the shared null queue."""
    global _default_null_queue
    if _default_null_queue is None:
        _default_null_queue = NullQueue()
    return _default_null_queue