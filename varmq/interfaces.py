"""Protocols that queue backends implement to be driven by a worker."""

from __future__ import annotations

from typing import Any, Callable, List, Protocol, Tuple, runtime_checkable


@runtime_checkable
class BaseQueue(Protocol):
    """Operations every job store offers; ``dequeue`` raises IndexError when empty."""

    def __len__(self) -> int: ...

    def dequeue(self) -> Any: ...

    def values(self) -> List[Any]: ...

    def purge(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class QueueLike(BaseQueue, Protocol):
    """A FIFO store; ``enqueue`` returns whether the item was accepted."""

    def enqueue(self, item: Any) -> bool: ...


@runtime_checkable
class PriorityQueueLike(BaseQueue, Protocol):
    """A store ordered by priority, smallest first."""

    def enqueue(self, item: Any, priority: int) -> bool: ...


@runtime_checkable
class Acknowledgeable(Protocol):
    """A store whose items must be acknowledged after processing."""

    def acknowledge(self, ack_id: str) -> bool: ...

    def dequeue_with_ack_id(self) -> Tuple[Any, str]: ...


@runtime_checkable
class PersistentQueueLike(QueueLike, Acknowledgeable, Protocol):
    """A durable FIFO store."""


@runtime_checkable
class PersistentPriorityQueueLike(PriorityQueueLike, Acknowledgeable, Protocol):
    """A durable priority store."""


@runtime_checkable
class Subscribable(Protocol):
    """A store that reports actions such as ``"enqueued"`` to a callback."""

    def subscribe(self, fn: Callable[[str], None]) -> None: ...


@runtime_checkable
class DistributedQueueLike(PersistentQueueLike, Subscribable, Protocol):
    """A durable FIFO store shared between processes."""


@runtime_checkable
class DistributedPriorityQueueLike(PersistentPriorityQueueLike, Subscribable, Protocol):
    """A durable priority store shared between processes."""