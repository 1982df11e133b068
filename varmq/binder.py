"""Binding a worker to the different kinds of job queues."""

from __future__ import annotations

import contextlib
from typing import Any

from .cache import DictCache
from .distributed import DistributedPriorityQueue, DistributedQueue
from .errors import WorkerRunningError
from .persistent import PersistentPriorityQueue, PersistentQueue
from .queue import JobQueue, PriorityJobQueue
from .queues import PriorityQueue, Queue
from .worker import Worker, WorkerKind


class WorkerBinder(Worker):
    """A worker that can be bound to standard, priority, persistent and distributed queues.

    Binding starts the worker; binding an already running worker keeps it running.
    """

    def copy(self, *args: Any) -> "WorkerBinder":
        """Return a new, unstarted binder with this one's function and merged options."""
        return WorkerBinder(self._fn, *args, kind=self.kind, base=self.configs)

    def _ensure_started(self) -> None:
        with contextlib.suppress(WorkerRunningError):
            self.start()

    def _ensure_cache(self) -> None:
        # persistent queues look jobs up by id, so they need a real cache
        if self._is_null_cache():
            self.cache = DictCache()

    def _require_void(self) -> None:
        if self.kind is not WorkerKind.VOID:
            raise TypeError("distributed queues can only be bound to a void worker")

    def _handle_queue_subscription(self, action: str) -> None:
        if action == "enqueued":
            self.notify_to_pull_next_jobs()

    def bind_queue(self) -> JobQueue:
        """Bind the worker to a new in-memory FIFO queue."""
        return self.with_queue(Queue())

    def with_queue(self, queue: Any) -> JobQueue:
        """Bind the worker to ``queue``, a FIFO store."""
        self._ensure_started()
        return JobQueue(self, queue)

    def bind_priority_queue(self) -> PriorityJobQueue:
        """Bind the worker to a new in-memory priority queue."""
        return self.with_priority_queue(PriorityQueue())

    def with_priority_queue(self, queue: Any) -> PriorityJobQueue:
        """Bind the worker to ``queue``, a priority store."""
        self._ensure_started()
        return PriorityJobQueue(self, queue)

    def with_persistent_queue(self, queue: Any) -> PersistentQueue:
        """Bind the worker to a durable FIFO store."""
        self._ensure_started()
        self._ensure_cache()
        return PersistentQueue(self, queue)

    def with_persistent_priority_queue(self, queue: Any) -> PersistentPriorityQueue:
        """Bind the worker to a durable priority store."""
        self._ensure_started()
        self._ensure_cache()
        return PersistentPriorityQueue(self, queue)

    def with_distributed_queue(self, queue: Any) -> DistributedQueue:
        """Bind a void worker to a distributed FIFO store and listen for new jobs."""
        self._require_void()
        self._ensure_started()
        handle = DistributedQueue(queue)
        self.queue = queue
        queue.subscribe(self._handle_queue_subscription)
        return handle

    def with_distributed_priority_queue(self, queue: Any) -> DistributedPriorityQueue:
        """Bind a void worker to a distributed priority store and listen for new jobs."""
        self._require_void()
        self._ensure_started()
        handle = DistributedPriorityQueue(queue)
        self.queue = queue
        queue.subscribe(self._handle_queue_subscription)
        return handle