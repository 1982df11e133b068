"""The worker: a self-sizing pool of threads that pulls jobs from a bound queue."""

from __future__ import annotations

import contextlib
import threading
import time
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from .cache import get_cache
from .config import Configs, load_configs, merge_configs, safe_concurrency
from .errors import (
    InvalidWorkerTypeError,
    JobError,
    SameConcurrencyError,
    WorkerNotRunningError,
    WorkerRunningError,
)
from .interfaces import Acknowledgeable
from .job import Job, JobStatus, parse_job
from .linkedlist import LinkedList, Node
from .null_queue import get_null_queue
from .pool_node import PoolClosedError, PoolNode
from .utils import Notifier, with_safe

DEFAULT_CLEANUP_CACHE_INTERVAL = 600.0
_POLL_INTERVAL = 0.01


class WorkerKind(Enum):
    """How the worker function reports its outcome.

    RESULT functions return a value and raise on failure; ERROR functions
    raise (or return an exception) on failure; VOID functions return nothing,
    and anything they raise is wrapped in a PanicError.
    """

    RESULT = "worker"
    ERROR = "error worker"
    VOID = "void worker"


class WorkerStatus(str, Enum):
    INITIATED = "Initiated"
    RUNNING = "Running"
    PAUSED = "Paused"
    STOPPED = "Stopped"


class _WaitGroup:
    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self, delta: int = 1) -> None:
        with self._cond:
            self._count += delta
            if self._count < 0:
                raise ValueError("negative wait group counter")
            if self._count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        self.add(-1)

    def wait(self) -> None:
        with self._cond:
            while self._count:
                self._cond.wait()


class Worker:
    """Runs a function over jobs taken from ``queue`` with bounded concurrency.

    Options are config functions or a plain integer concurrency. ``base``
    gives the configuration to merge them onto instead of the defaults.
    """

    def __init__(
        self,
        fn: Callable[[Any], Any],
        *args: Any,
        kind: Union[WorkerKind, str] = WorkerKind.RESULT,
        base: Optional[Configs] = None,
    ) -> None:
        self.configs: Configs = merge_configs(base, *args) if base is not None else load_configs(*args)
        self.kind = WorkerKind(kind)
        self.queue: Any = get_null_queue()
        self.cache: Any = self.configs.cache
        self._fn = fn
        self._concurrency = self.configs.concurrency
        self._processing = 0
        self._status = WorkerStatus.INITIATED
        self._lock = threading.Lock()
        self._pool: LinkedList[PoolNode[Job[Any, Any]]] = LinkedList()
        self._notifier = Notifier(1)
        self._wg = _WaitGroup()
        self._tickers: List[threading.Event] = []

    def __repr__(self) -> str:
        return (
            f"Worker(kind={self.kind.name}, status={self.status().value!r}, "
            f"concurrency={self.num_concurrency()})"
        )

    # -- state -----------------------------------------------------------

    def _set_status(self, status: WorkerStatus) -> None:
        with self._lock:
            self._status = status

    def status(self) -> WorkerStatus:
        with self._lock:
            return self._status

    def is_paused(self) -> bool:
        return self.status() is WorkerStatus.PAUSED

    def is_running(self) -> bool:
        return self.status() is WorkerStatus.RUNNING

    def is_stopped(self) -> bool:
        return self.status() is WorkerStatus.STOPPED

    def num_concurrency(self) -> int:
        with self._lock:
            return self._concurrency

    def num_processing(self) -> int:
        with self._lock:
            return self._processing

    def num_idle_workers(self) -> int:
        return len(self._pool)

    def _is_null_cache(self) -> bool:
        return self.cache is get_cache()

    def _num_min_idle_workers(self) -> int:
        return max(self.num_concurrency() * self.configs.min_idle_worker_ratio // 100, 1)

    def _wait_jobs(self) -> None:
        """Block until every dispatched job has been finished."""
        self._wg.wait()

    # -- job processing --------------------------------------------------

    def _run_job(self, job: Job[Any, Any]) -> None:
        data = job.data
        err: Optional[BaseException] = None

        if not callable(self._fn):
            err = InvalidWorkerTypeError()
        elif self.kind is WorkerKind.VOID:
            err = with_safe(self.kind.value, lambda: self._fn(data))
        else:
            try:
                outcome = self._fn(data)
            except Exception as exc:  # noqa: BLE001 - reported through the job
                err = exc
            else:
                if self.kind is WorkerKind.RESULT:
                    job.save_and_send_result(outcome)
                elif isinstance(outcome, BaseException):
                    err = outcome

        if err is not None:
            job.save_and_send_error(err)

    def _spawn(self, node: Node[PoolNode[Job[Any, Any]]]) -> None:
        for job in node.value:
            with contextlib.suppress(RuntimeError):
                self._run_job(job)
            job.change_status(JobStatus.FINISHED)
            with contextlib.suppress(JobError):
                job.close()
            self._free_pool_node(node)
            with self._lock:
                self._processing -= 1
            self.notify_to_pull_next_jobs()
            self._wg.done()

    def _init_pool_node(self) -> Node[PoolNode[Job[Any, Any]]]:
        node: Node[PoolNode[Job[Any, Any]]] = Node(PoolNode(1))
        threading.Thread(target=self._spawn, args=(node,), name="varmq-worker", daemon=True).start()
        return node

    def _free_pool_node(self, node: Node[PoolNode[Job[Any, Any]]]) -> None:
        expiry_enabled = self.configs.idle_worker_expiry_duration > 0
        if expiry_enabled:
            node.value.update_last_used()

        if (
            len(self.queue) >= self.num_concurrency()
            or expiry_enabled
            or len(self._pool) < self._num_min_idle_workers()
        ):
            self._pool.push_node(node)
            return

        node.value.close()

    def _dispatch(self, job: Job[Any, Any]) -> None:
        while True:
            node = self._pool.pop_back() or self._init_pool_node()
            try:
                node.value.put(job)
                return
            except PoolClosedError:
                continue

    def _to_job(self, value: Any) -> Optional[Job[Any, Any]]:
        if isinstance(value, Job):
            return value
        if isinstance(value, (bytes, bytearray, str)):
            try:
                job = parse_job(value)
            except JobError:
                return None
            cached = self.cache.load(job.id)
            if isinstance(cached, Job):
                return cached
            self.cache.store(job.id, job)
            job.queue = self.queue
            return job
        return None

    def _process_next_job(self) -> bool:
        """Dispatch the next open job; return False when nothing could be dequeued."""
        while True:
            queue = self.queue
            try:
                if isinstance(queue, Acknowledgeable):
                    value, ack_id = queue.dequeue_with_ack_id()
                else:
                    value, ack_id = queue.dequeue(), ""
            except IndexError:
                return False

            job = self._to_job(value)
            if job is None:
                return True

            if job.is_closed:
                self.cache.delete(job.id)
                continue

            self._wg.add()
            with self._lock:
                self._processing += 1
            job.change_status(JobStatus.PROCESSING)
            job.ack_id = ack_id
            self._dispatch(job)
            return True

    def _pull_jobs(self) -> None:
        while (
            self.is_running()
            and self.num_processing() < self.num_concurrency()
            and len(self.queue) > 0
        ):
            if not self._process_next_job():
                break

    def notify_to_pull_next_jobs(self) -> None:
        """Wake the event loop so it dispatches pending jobs."""
        with contextlib.suppress(RuntimeError):
            self._notifier.send()

    # -- background tasks ------------------------------------------------

    def _every(self, interval: float, fn: Callable[[], None]) -> None:
        stop = threading.Event()
        self._tickers.append(stop)

        def loop() -> None:
            while not stop.wait(interval):
                fn()

        threading.Thread(target=loop, name="varmq-ticker", daemon=True).start()

    def _stop_tickers(self) -> None:
        for stop in self._tickers:
            stop.set()
        self._tickers = []

    def _cleanup_cache(self) -> None:
        def visit(key: Any, value: Any) -> bool:
            if isinstance(value, Job) and value.is_closed:
                self.cache.delete(key)
            return True

        self.cache.range(visit)

    def _remove_idle_workers(self) -> None:
        interval = self.configs.idle_worker_expiry_duration
        target = self._num_min_idle_workers()
        if len(self._pool) <= target:
            return

        now = time.monotonic()
        for node in self._pool.node_slice()[target:]:
            last_used = node.value.last_used
            expired = last_used is None or last_used + interval < now
            if expired and self._pool.remove(node):
                node.value.close()

    def _wait_until_current_processing(self) -> None:
        while self.num_processing() != 0:
            time.sleep(_POLL_INTERVAL)

    # -- lifecycle -------------------------------------------------------

    def start(self) -> None:
        """Start the event loop and the first pool worker; raise if already running."""
        if self.is_running():
            raise WorkerRunningError()

        if not self._is_null_cache() and self.configs.cleanup_cache_interval == 0:
            self.configs.cleanup_cache_interval = DEFAULT_CLEANUP_CACHE_INTERVAL

        threading.Thread(
            target=self._notifier.receive,
            args=(self._pull_jobs,),
            name="varmq-event-loop",
            daemon=True,
        ).start()

        if self.configs.cleanup_cache_interval > 0:
            self._every(self.configs.cleanup_cache_interval, self._cleanup_cache)
        if self.configs.idle_worker_expiry_duration > 0:
            self._every(self.configs.idle_worker_expiry_duration, self._remove_idle_workers)

        self._pool.push_node(self._init_pool_node())
        self._set_status(WorkerStatus.RUNNING)
        self.notify_to_pull_next_jobs()

    def tune_pool(self, concurrency: int) -> None:
        """Change the concurrency of a running worker, growing or shrinking the pool."""
        if self.status() is not WorkerStatus.RUNNING:
            raise WorkerNotRunningError()

        new = safe_concurrency(concurrency)
        with self._lock:
            old = self._concurrency
            if old == new:
                raise SameConcurrencyError()
            self._concurrency = new

        if new > old:
            self.notify_to_pull_next_jobs()
            return

        # the idle worker remover trims the pool when it is enabled
        if self.configs.idle_worker_expiry_duration != 0:
            return

        shrink = old - new
        min_idle = self._num_min_idle_workers()
        while shrink > 0 and len(self._pool) > min_idle:
            node = self._pool.pop_back()
            if node is None:
                break
            node.value.close()
            shrink -= 1

    def copy(self, *args: Any) -> "Worker":
        """Return a new, unstarted worker with this one's function and merged options."""
        return Worker(self._fn, *args, kind=self.kind, base=self.configs)

    def pause(self) -> "Worker":
        self._set_status(WorkerStatus.PAUSED)
        return self

    def pause_and_wait(self) -> None:
        """Pause and wait until the jobs in progress are done."""
        self.pause()
        self._wait_until_current_processing()

    def stop(self) -> None:
        """Stop processing, close every pool worker and clear the cache."""
        try:
            self._stop_tickers()
            self._notifier.close()
            self.pause_and_wait()
            for node in self._pool.node_slice():
                node.value.close()
                self._pool.remove(node)
            self.cache.clear()
        finally:
            self._set_status(WorkerStatus.STOPPED)

    def restart(self) -> None:
        """Pause, reset the event loop and start processing again."""
        self.pause_and_wait()
        self._notifier.close()
        self._notifier = Notifier(1)
        self._stop_tickers()
        self.start()
        with contextlib.suppress(WorkerRunningError):
            self.resume()

    def resume(self) -> None:
        """Continue processing pending jobs; start the worker if it never ran."""
        if self.status() is WorkerStatus.INITIATED:
            self.start()
            return
        if self.is_running():
            raise WorkerRunningError()
        self._set_status(WorkerStatus.RUNNING)
        self.notify_to_pull_next_jobs()