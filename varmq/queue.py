"""FIFO and priority job queues bound to a worker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterable, Optional, TypeVar

from .config import load_job_configs, with_job_id
from .external import ExternalQueue
from .job import GroupJob, Job
from .worker import Worker

T = TypeVar("T")


@dataclass
class Item(Generic[T]):
    """A value to enqueue, with an optional job id and priority."""

    value: Any = None
    id: str = ""
    priority: int = 0


class JobQueue(ExternalQueue):
    """A queue whose jobs are processed by ``worker`` in the store's order."""

    def __init__(self, worker: Worker, queue: Any) -> None:
        worker.queue = queue
        super().__init__(worker)
        self._internal = queue

    def add(self, data: Any, *args: Any) -> Optional[Job[Any, Any]]:
        """Enqueue ``data``; return its job, or None if the store refused it."""
        job: Job[Any, Any] = Job(data, load_job_configs(self._worker.configs, *args).id)
        if not self._submit(job, lambda: self._internal.enqueue(job)):
            return None
        return job

    def add_all(self, items: Iterable[Item[Any]]) -> GroupJob[Any, Any]:
        """Enqueue every item as one group and return the group."""
        items = list(items)
        group: GroupJob[Any, Any] = GroupJob(len(items))
        for item in items:
            job = group.new_job(
                item.value, load_job_configs(self._worker.configs, with_job_id(item.id))
            )
            self._submit(job, lambda: self._internal.enqueue(job))
        return group


class PriorityJobQueue(ExternalQueue):
    """A queue whose jobs are processed smallest priority first."""

    def __init__(self, worker: Worker, queue: Any) -> None:
        worker.queue = queue
        super().__init__(worker)
        self._internal = queue

    def add(self, data: Any, priority: int, *args: Any) -> Optional[Job[Any, Any]]:
        """Enqueue ``data`` with ``priority``; return its job, or None if refused."""
        job: Job[Any, Any] = Job(data, load_job_configs(self._worker.configs, *args).id)
        if not self._submit(job, lambda: self._internal.enqueue(job, priority)):
            return None
        return job

    def add_all(self, items: Iterable[Item[Any]]) -> GroupJob[Any, Any]:
        """Enqueue every item with its own priority as one group."""
        items = list(items)
        group: GroupJob[Any, Any] = GroupJob(len(items))
        for item in items:
            job = group.new_job(
                item.value, load_job_configs(self._worker.configs, with_job_id(item.id))
            )
            self._submit(job, lambda: self._internal.enqueue(job, item.priority))
        return group