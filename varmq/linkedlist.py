"""A thread-safe doubly linked list whose nodes can be detached and reinserted."""

from __future__ import annotations

import threading
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class Node(Generic[T]):
    """A list node; detached nodes have no neighbours."""

    __slots__ = ("value", "_next", "_prev")

    def __init__(self, value: T = None) -> None:  # type: ignore[assignment]
        self.value = value
        self._next: Optional[Node[T]] = None
        self._prev: Optional[Node[T]] = None

    def next(self) -> Optional["Node[T]"]:
        """Return the following link, or None when the node is detached."""
        return self._next

    def prev(self) -> Optional["Node[T]"]:
        """Return the preceding link, or None when the node is detached."""
        return self._prev

    def __repr__(self) -> str:
        return f"Node({self.value!r})"


class LinkedList(Generic[T]):
    """A circular doubly linked list with a sentinel root."""

    def __init__(self) -> None:
        self._root: Node[T] = Node()
        self._root._next = self._root
        self._root._prev = self._root
        self._len = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return self._len

    def front(self) -> Optional[Node[T]]:
        with self._lock:
            return self._root._next if self._len else None

    def back(self) -> Optional[Node[T]]:
        with self._lock:
            return self._root._prev if self._len else None

    def _insert(self, node: Node[T], at: Node[T]) -> Node[T]:
        node._prev = at
        node._next = at._next
        at._next._prev = node  # type: ignore[union-attr]
        at._next = node
        self._len += 1
        return node

    def _unlink(self, node: Node[T]) -> None:
        node._prev._next = node._next  # type: ignore[union-attr]
        node._next._prev = node._prev  # type: ignore[union-attr]
        node._next = None
        node._prev = None
        self._len -= 1

    def insert_after(self, value: T, mark: Node[T]) -> Node[T]:
        """Insert a new node holding ``value`` after ``mark``, which must be in this list."""
        with self._lock:
            return self._insert(Node(value), mark)

    def push_front(self, value: T) -> Node[T]:
        with self._lock:
            return self._insert(Node(value), self._root)

    def push_back(self, value: T) -> Node[T]:
        with self._lock:
            return self._insert(Node(value), self._root._prev)  # type: ignore[arg-type]

    def push_node(self, node: Node[T]) -> None:
        """Append an existing, detached node at the back."""
        with self._lock:
            self._insert(node, self._root._prev)  # type: ignore[arg-type]

    def remove(self, node: Node[T]) -> bool:
        """Detach ``node``; return False if it is the sentinel or not linked."""
        with self._lock:
            if node is self._root or node._prev is None or node._next is None:
                return False
            self._unlink(node)
            return True

    def pop_back(self) -> Optional[Node[T]]:
        with self._lock:
            if not self._len:
                return None
            last = self._root._prev
            self._unlink(last)  # type: ignore[arg-type]
            return last

    def pop_front(self) -> Optional[Node[T]]:
        with self._lock:
            if not self._len:
                return None
            first = self._root._next
            self._unlink(first)  # type: ignore[arg-type]
            return first

    def node_slice(self) -> List[Node[T]]:
        """Return a snapshot of the nodes, front to back."""
        with self._lock:
            nodes: List[Node[T]] = []
            node = self._root._next
            while node is not self._root:
                nodes.append(node)  # type: ignore[arg-type]
                node = node._next  # type: ignore[union-attr]
            return nodes