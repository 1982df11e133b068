"""Operations shared by every queue that a worker is bound to."""

from __future__ import annotations

import time
from typing import Any, Callable

from .errors import JobNotFoundError
from .job import GROUP_ID_PREFIX, GroupJob, Job, JobStatus, generate_group_id
from .worker import Worker

_POLL_INTERVAL = 0.01


class ExternalQueue:
    """The user-facing side of a queue: lookup, waiting, purging and closing."""

    def __init__(self, worker: Worker) -> None:
        self._worker = worker

    def __enter__(self) -> "ExternalQueue":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.wait_and_close()

    def _track(self, job: Job[Any, Any]) -> None:
        job.change_status(JobStatus.QUEUED)
        if job.id:
            self._worker.cache.store(job.id, job)

    def _untrack(self, job: Job[Any, Any]) -> None:
        if job.id:
            self._worker.cache.delete(job.id)

    def _submit(self, job: Job[Any, Any], put: Callable[[], bool]) -> bool:
        """Mark ``job`` queued and hand it to the store; close it if the store refuses."""
        self._track(job)
        try:
            accepted = put()
        except Exception:
            self._untrack(job)
            job.close()
            raise
        if not accepted:
            self._untrack(job)
            job.close()
            return False
        self._worker.notify_to_pull_next_jobs()
        return True

    def num_pending(self) -> int:
        """Return the number of jobs waiting in the queue."""
        return len(self._worker.queue)

    def worker(self) -> Worker:
        return self._worker

    def job_by_id(self, job_id: str) -> Job[Any, Any]:
        """Return the cached job with ``job_id``; raise JobNotFoundError if unknown."""
        job = self._worker.cache.load(job_id)
        if job is None:
            raise JobNotFoundError(f"job not found for id: {job_id}")
        return job

    def groups_job_by_id(self, job_id: str) -> GroupJob[Any, Any]:
        """Return the cached group member with ``job_id``, prefixed or not."""
        if not job_id.startswith(GROUP_ID_PREFIX):
            job_id = generate_group_id(job_id)
        job = self._worker.cache.load(job_id)
        if not isinstance(job, GroupJob):
            raise JobNotFoundError(f"groups job not found for id: {job_id}")
        return job

    def wait_until_finished(self) -> None:
        """Block until every pending job has been processed."""
        worker = self._worker
        if worker.is_paused():
            worker.resume()

        worker._wait_jobs()

        while self.num_pending() > 0 or worker.num_processing() > 0:
            time.sleep(_POLL_INTERVAL)

    def purge(self) -> None:
        """Drop every pending job and close the result channels they held."""
        queue = self._worker.queue
        previous = queue.values()
        queue.purge()
        for value in previous:
            if isinstance(value, Job):
                value.close_result_channel()

    def close(self) -> None:
        """Purge the queue, stop the worker and wait for it to settle."""
        self.purge()
        self._worker.stop()
        self.wait_until_finished()

    def wait_and_close(self) -> None:
        """Wait for the pending jobs, then close."""
        self.wait_until_finished()
        self.close()