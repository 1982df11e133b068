"""Constructors for the three kinds of worker."""

from __future__ import annotations

from typing import Any, Callable

from .binder import WorkerBinder
from .worker import WorkerKind


def new_worker(fn: Callable[[Any], Any], *args: Any) -> WorkerBinder:
    """Create a worker whose function returns a result and raises on failure.

    Options are config functions or an integer concurrency; a concurrency
    below 1 means the number of CPUs.
    """
    return WorkerBinder(fn, *args, kind=WorkerKind.RESULT)


def new_err_worker(fn: Callable[[Any], Any], *args: Any) -> WorkerBinder:
    """Create a worker whose function only reports failure, by raising or returning an exception."""
    return WorkerBinder(fn, *args, kind=WorkerKind.ERROR)


def new_void_worker(fn: Callable[[Any], Any], *args: Any) -> WorkerBinder:
    """Create a worker whose function returns nothing; only it may use distributed queues."""
    return WorkerBinder(fn, *args, kind=WorkerKind.VOID)