"""Jobs, group jobs and their JSON form."""

from __future__ import annotations

import collections
import contextlib
import json
import threading
from enum import Enum
from typing import Any, Generic, Iterator, Optional, TypeVar, Union

from .config import JobConfigs
from .errors import JobError, VarmqError
from .interfaces import Acknowledgeable
from .result import Result, ResultChannel

T = TypeVar("T")
R = TypeVar("R")

GROUP_ID_PREFIX = "g:"


class JobStatus(str, Enum):
    CREATED = "Created"
    QUEUED = "Queued"
    PROCESSING = "Processing"
    FINISHED = "Finished"
    CLOSED = "Closed"


def generate_group_id(job_id: str) -> str:
    """Return ``job_id`` with the group prefix."""
    return f"{GROUP_ID_PREFIX}{job_id}"


def _consume(results: Iterator[Any]) -> None:
    """Exhaust ``results``, discarding every item."""
    collections.deque(results, maxlen=0)


class Job(Generic[T, R]):
    """A unit of work with its status, input and result.

    ``buffer_size`` is the capacity of the result channel; None gives a job
    without one, whose results are only kept in ``output``.
    """

    def __init__(self, data: T, job_id: str = "", *, buffer_size: Optional[int] = 1) -> None:
        self._id = job_id
        self.data = data
        self.output: Result[R] = Result()
        self._channel: Optional[ResultChannel[R]] = (
            ResultChannel(buffer_size) if buffer_size is not None else None
        )
        self._status = JobStatus.CREATED
        self._status_lock = threading.Lock()
        self.ack_id = ""
        self.queue: Any = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, status={self.status.value!r})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def result_channel(self) -> Optional[ResultChannel[R]]:
        return self._channel

    @property
    def status(self) -> JobStatus:
        with self._status_lock:
            return self._status

    @property
    def is_closed(self) -> bool:
        return self.status is JobStatus.CLOSED

    def change_status(self, status: JobStatus) -> None:
        with self._status_lock:
            self._status = JobStatus(status)

    def save_and_send_result(self, result: R) -> None:
        self.output = Result(job_id=self._id, data=result)
        if self._channel is not None:
            self._channel.send(self.output)

    def save_and_send_error(self, error: BaseException) -> None:
        self.output = Result(job_id=self._id, err=error)
        if self._channel is not None:
            self._channel.send(self.output)

    def result(self) -> R:
        """Block until the job completes; return its data or raise its error."""
        outcome = self._channel.get() if self._channel is not None else None
        if outcome is None:
            outcome = self.output
        if outcome.err is not None:
            raise outcome.err
        return outcome.data

    def _drain_channel(self) -> None:
        if self._channel is None:
            return
        results = self._channel.read()
        threading.Thread(target=_consume, args=(results,), daemon=True).start()

    def drain(self) -> None:
        """Discard the job's results in the background; raise if already read."""
        self._drain_channel()

    def close_result_channel(self) -> None:
        if self._channel is not None:
            self._channel.close()

    def _ensure_closeable(self) -> None:
        status = self.status
        if status is JobStatus.PROCESSING:
            raise JobError("job is processing, you can't close processing job")
        if status is JobStatus.CLOSED:
            raise JobError("job is already closed")

    def json(self) -> bytes:
        """Serialize the job; raise JobError if its data is not JSON-encodable."""
        err = self.output.err
        view = {
            "id": self._id,
            "status": self.status.value,
            "input": self.data,
            "output": {
                "JobId": self.output.job_id,
                "Data": self.output.data,
                "Err": None if err is None else str(err),
            },
        }
        try:
            return json.dumps(view, separators=(",", ":")).encode()
        except (TypeError, ValueError) as exc:
            raise JobError(f"failed to serialize job: {exc}") from exc

    def close(self) -> None:
        """Close the job and its result channel; raise if processing or closed."""
        self._ensure_closeable()
        self.close_result_channel()
        with contextlib.suppress(JobError):
            self.ack()
        self.change_status(JobStatus.CLOSED)

    def ack(self) -> None:
        """Acknowledge the job to its queue; raise JobError if that is not possible."""
        if not self.ack_id or self.is_closed:
            raise JobError("job is not acknowledgeable")
        if not isinstance(self.queue, Acknowledgeable):
            raise JobError("job is not acknowledgeable")
        if not self.queue.acknowledge(self.ack_id):
            raise JobError(
                f"queue failed to acknowledge job {self._id} (ackId={self.ack_id})"
            )


def parse_job(data: Union[bytes, str]) -> Job[Any, Any]:
    """Rebuild a job from its JSON form."""
    try:
        view = json.loads(data)
    except (TypeError, ValueError) as exc:
        raise JobError(f"failed to parse job: {exc}") from exc
    if not isinstance(view, dict):
        raise JobError("failed to parse job: expected a JSON object")

    raw_status = view.get("status", "")
    try:
        status = JobStatus(raw_status)
    except ValueError:
        raise JobError(f"invalid status: {raw_status}") from None

    job: Job[Any, Any] = Job(view.get("input"), view.get("id") or "")
    output = view.get("output") or {}
    err = output.get("Err")
    job.output = Result(
        job_id=output.get("JobId") or "",
        data=output.get("Data"),
        err=VarmqError(str(err)) if err else None,
    )
    job.change_status(status)
    return job


class _Counter:
    def __init__(self, value: int) -> None:
        self._value = value
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def decrement(self) -> int:
        with self._lock:
            self._value -= 1
            return self._value


class GroupJob(Job[T, R]):
    """A set of jobs sharing one result channel; it finishes when all are closed."""

    def __init__(self, size: int) -> None:
        super().__init__(None, "", buffer_size=size)  # type: ignore[arg-type]
        self._done = threading.Event()
        self._remaining = _Counter(size)

    def __len__(self) -> int:
        return max(self._remaining.value, 0)

    def __bool__(self) -> bool:
        return True

    def new_job(self, data: T, config: JobConfigs) -> "GroupJob[T, R]":
        """Create a member job sharing this group's channel and counter."""
        member: GroupJob[T, R] = GroupJob.__new__(GroupJob)
        Job.__init__(member, data, generate_group_id(config.id), buffer_size=None)
        member._channel = self._channel
        member._done = self._done
        member._remaining = self._remaining
        return member

    def results(self) -> Iterator[Result[R]]:
        """Return an iterator over the group's results; raise if already read."""
        assert self._channel is not None
        return self._channel.read()

    def wait(self) -> None:
        """Block until every job in the group is closed."""
        self._done.wait()

    def drain(self) -> None:
        """Discard the group's results in the background; raise if already read."""
        self._drain_channel()

    def close(self) -> None:
        """Close this member; the last one closes the shared channel."""
        self._ensure_closeable()
        with contextlib.suppress(JobError):
            self.ack()
        self.change_status(JobStatus.CLOSED)
        if self._remaining.decrement() == 0:
            self._done.set()
            self.close_result_channel()