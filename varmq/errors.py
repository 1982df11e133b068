"""Exception types raised by the queue and worker machinery."""

from __future__ import annotations

from typing import Optional


class VarmqError(Exception):
    """Base class for every error raised by this package."""

    default_message = ""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(self.default_message if message is None else message)


class JobError(VarmqError):
    """A job could not be closed, acknowledged or parsed."""


class WorkerError(VarmqError):
    """A worker was asked to do something its state does not allow."""


class WorkerRunningError(WorkerError):
    """The worker is already running."""

    default_message = "worker is already running"


class WorkerNotRunningError(WorkerError):
    """The worker is not running."""

    default_message = "worker is not running"


class SameConcurrencyError(WorkerError):
    """The requested concurrency equals the current one."""

    default_message = "worker already has the same concurrency"


class InvalidWorkerTypeError(WorkerError):
    """The worker function is of an unknown kind."""

    default_message = "invalid worker type passed to worker"


class JobNotFoundError(VarmqError, LookupError):
    """No job with the requested id is known to the cache."""

    default_message = "job not found"


class ResultConsumedError(VarmqError):
    """A result channel was read more than once."""

    default_message = "result channel has already been consumed"


def select_error(*args: Optional[BaseException]) -> Optional[BaseException]:
    """Return the first error that is not None, or None."""
    return next((err for err in args if err is not None), None)