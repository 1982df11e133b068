"""Producer-side handles for queues shared between processes."""

from __future__ import annotations

from typing import Any

from .config import load_job_configs, new_config, with_required_job_id
from .job import Job


def _void_job(data: Any, args: Any) -> Job[Any, Any]:
    config = with_required_job_id(load_job_configs(new_config(), *args))
    return Job(data, config.id, buffer_size=None)


class DistributedQueue:
    """Adds jobs to a distributed FIFO store for any worker to consume."""

    def __init__(self, internal_queue: Any) -> None:
        self._internal = internal_queue

    def num_pending(self) -> int:
        return len(self._internal)

    def add(self, data: Any, *args: Any) -> bool:
        """Enqueue ``data`` under a required job id; return whether it was accepted.

        Raises ValueError without an id and JobError if ``data`` is not
        JSON-serializable.
        """
        job = _void_job(data, args)
        payload = job.json()
        if not self._internal.enqueue(payload):
            job.close()
            return False
        job.queue = self._internal
        return True

    def purge(self) -> None:
        self._internal.purge()

    def close(self) -> None:
        self._internal.close()


class DistributedPriorityQueue:
    """Adds jobs to a distributed priority store for any worker to consume."""

    def __init__(self, internal_queue: Any) -> None:
        self._internal = internal_queue

    def num_pending(self) -> int:
        return len(self._internal)

    def add(self, data: Any, priority: int, *args: Any) -> bool:
        """Enqueue ``data`` with ``priority`` under a required job id."""
        job = _void_job(data, args)
        payload = job.json()
        if not self._internal.enqueue(payload, priority):
            job.close()
            return False
        job.queue = self._internal
        return True

    def purge(self) -> None:
        self._internal.purge()

    def close(self) -> None:
        self._internal.close()