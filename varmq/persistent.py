"""Queues backed by durable stores; jobs travel as JSON and need ids."""

from __future__ import annotations

import contextlib
from typing import Any, Iterable, Optional

from .config import load_job_configs, with_job_id, with_required_job_id
from .errors import JobError
from .job import GroupJob, Job, JobStatus
from .queue import Item, JobQueue, PriorityJobQueue


class PersistentQueue(JobQueue):
    """A FIFO queue over a durable, acknowledgeable store."""

    def add(self, data: Any, *args: Any) -> Optional[Job[Any, Any]]:
        """Enqueue ``data`` under a required job id.

        Raises ValueError without an id and JobError if ``data`` is not
        JSON-serializable; returns None if the store refused the job.
        """
        config = with_required_job_id(load_job_configs(self._worker.configs, *args))
        job: Job[Any, Any] = Job(data, config.id)
        payload = job.json()
        job.queue = self._internal
        if not self._submit(job, lambda: self._internal.enqueue(payload)):
            return None
        return job

    def add_all(self, items: Iterable[Item[Any]]) -> GroupJob[Any, Any]:
        """Enqueue every item as one group; each item needs an id."""
        items = list(items)
        group: GroupJob[Any, Any] = GroupJob(len(items))
        for item in items:
            config = with_required_job_id(
                load_job_configs(self._worker.configs, with_job_id(item.id))
            )
            job = group.new_job(item.value, config)
            try:
                payload = job.json()
            except JobError:
                job.close()
                continue
            job.queue = self._internal
            self._submit(job, lambda: self._internal.enqueue(payload))
        return group

    def purge(self) -> None:
        """Drop pending entries and close every job still waiting in the queue."""
        super().purge()

        def close_queued(_key: Any, value: Any) -> bool:
            if isinstance(value, Job) and value.status is JobStatus.QUEUED:
                with contextlib.suppress(JobError):
                    value.close()
            return True

        self._worker.cache.range(close_queued)

    def close(self) -> None:
        """Close the underlying store and stop the worker."""
        try:
            self._worker.queue.close()
        finally:
            self._worker.stop()


class PersistentPriorityQueue(PriorityJobQueue):
    """A priority queue over a durable, acknowledgeable store."""

    def add(self, data: Any, priority: int, *args: Any) -> Optional[Job[Any, Any]]:
        """Enqueue ``data`` with ``priority`` under a required job id."""
        config = with_required_job_id(load_job_configs(self._worker.configs, *args))
        job: Job[Any, Any] = Job(data, config.id)
        payload = job.json()
        job.queue = self._internal
        if not self._submit(job, lambda: self._internal.enqueue(payload, priority)):
            return None
        return job

    def add_all(self, items: Iterable[Item[Any]]) -> GroupJob[Any, Any]:
        """Enqueue every item with its priority as one group; each needs an id."""
        items = list(items)
        group: GroupJob[Any, Any] = GroupJob(len(items))
        for item in items:
            config = with_required_job_id(
                load_job_configs(self._worker.configs, with_job_id(item.id))
            )
            job = group.new_job(item.value, config)
            try:
                payload = job.json()
            except JobError:
                job.close()
                continue
            job.queue = self._internal
            self._submit(job, lambda: self._internal.enqueue(payload, item.priority))
        return group

    def purge(self) -> None:
        """Drop every pending entry from the store."""
        self._worker.queue.purge()

    def close(self) -> None:
        """Close the underlying store and stop the worker."""
        try:
            self._worker.queue.close()
        finally:
            self._worker.stop()