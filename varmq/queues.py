"""In-memory FIFO and priority queues used as default job stores."""

from __future__ import annotations

import heapq
import itertools
import threading
from collections import deque
from typing import Any, Deque, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class Queue(Generic[T]):
    """A thread-safe first-in first-out queue."""

    def __init__(self, item_type: Optional[type] = None) -> None:
        self._items: Deque[T] = deque()
        self._item_type = item_type
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def enqueue(self, item: T) -> bool:
        """Append ``item``; raise TypeError if it is not of the queue's item type."""
        if self._item_type is not None and not isinstance(item, self._item_type):
            raise TypeError(f"expected {self._item_type.__name__}, got {type(item).__name__}")
        with self._lock:
            self._items.append(item)
        return True

    def dequeue(self) -> T:
        """Remove and return the front item; raise IndexError when empty."""
        with self._lock:
            if not self._items:
                raise IndexError("dequeue from an empty queue")
            return self._items.popleft()

    def values(self) -> List[T]:
        with self._lock:
            return list(self._items)

    def purge(self) -> None:
        with self._lock:
            self._items.clear()

    def close(self) -> None:
        self.purge()


class PriorityQueue(Generic[T]):
    """A thread-safe min-priority queue; equal priorities keep insertion order."""

    def __init__(self, item_type: Optional[type] = None) -> None:
        self._heap: List[Tuple[int, int, Any]] = []
        self._item_type = item_type
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def enqueue(self, item: T, priority: int) -> bool:
        """Push ``item``; return False if it is not of the queue's item type."""
        if self._item_type is not None and not isinstance(item, self._item_type):
            return False
        with self._lock:
            heapq.heappush(self._heap, (priority, next(self._counter), item))
        return True

    def dequeue(self) -> T:
        """Remove and return the item with the smallest priority; raise IndexError when empty."""
        with self._lock:
            if not self._heap:
                raise IndexError("dequeue from an empty priority queue")
            return heapq.heappop(self._heap)[2]

    def values(self) -> List[T]:
        """Return the items in heap order."""
        with self._lock:
            return [entry[2] for entry in self._heap]

    def purge(self) -> None:
        with self._lock:
            self._heap.clear()

    def close(self) -> None:
        self.purge()