import threading
import time
from collections import deque

import pytest

from varmq.cache import DictCache, get_cache
from varmq.config import (
    with_auto_cleanup_cache,
    with_cache,
    with_concurrency,
    with_idle_worker_expiry_duration,
    with_job_id_generator,
)
from varmq.errors import (
    InvalidWorkerTypeError,
    SameConcurrencyError,
    WorkerNotRunningError,
    WorkerRunningError,
)
from varmq.job import Job, JobStatus
from varmq.null_queue import get_null_queue
from varmq.queues import Queue
from varmq.utils import PanicError, cpus
from varmq.worker import Worker, WorkerKind, WorkerStatus


def length(data):
    return len(data)


def double(data):
    return data * 2


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def submit(worker, data, job_id=""):
    job = Job(data, job_id)
    worker.queue.enqueue(job)
    job.change_status(JobStatus.QUEUED)
    worker.notify_to_pull_next_jobs()
    return job


@pytest.fixture
def workers():
    made = []

    def make(fn, *args, queue=True, start=True, **kwargs):
        worker = Worker(fn, *args, **kwargs)
        if queue:
            worker.queue = Queue()
        if start:
            worker.start()
        made.append(worker)
        return worker

    yield make
    for worker in made:
        if not worker.is_stopped():
            worker.stop()


class AckQueue:
    def __init__(self):
        self.items = deque()
        self.acked = []

    def __len__(self):
        return len(self.items)

    def enqueue(self, item):
        self.items.append(item)
        return True

    def dequeue(self):
        return self.items.popleft()

    def dequeue_with_ack_id(self):
        return self.items.popleft(), "ack-1"

    def acknowledge(self, ack_id):
        self.acked.append(ack_id)
        return True

    def values(self):
        return list(self.items)

    def purge(self):
        self.items.clear()

    def close(self):
        self.purge()


# -- construction --------------------------------------------------------


def test_default_configuration():
    w = Worker(length)
    assert w.num_concurrency() == 1
    assert w.status() is WorkerStatus.INITIATED
    assert w.status() == "Initiated"
    assert w.queue is get_null_queue()
    assert w.kind is WorkerKind.RESULT
    assert w.num_processing() == 0
    assert w.num_idle_workers() == 0


def test_custom_concurrency():
    assert Worker(length, with_concurrency(4)).num_concurrency() == 4


def test_custom_cache():
    cache = DictCache()
    assert Worker(length, with_cache(cache)).cache is cache


def test_multiple_configurations():
    cache = DictCache()
    w = Worker(length, with_concurrency(8), with_cache(cache), with_auto_cleanup_cache(300))
    assert w.num_concurrency() == 8
    assert w.cache is cache
    assert w.configs.cleanup_cache_interval == 300


@pytest.mark.parametrize("kind", [WorkerKind.ERROR, WorkerKind.VOID])
def test_worker_kinds(kind):
    w = Worker(lambda data: None, kind=kind)
    assert w.kind is kind


def test_direct_concurrency_value():
    assert Worker(length, 5).num_concurrency() == 5


def test_custom_job_id_generator():
    w = Worker(length, with_job_id_generator(lambda: "test-id"))
    assert w.configs.job_id_generator() == "test-id"


@pytest.mark.parametrize("value", [0, -5])
def test_non_positive_concurrency_uses_cpu_count(value):
    assert Worker(length, with_concurrency(value)).num_concurrency() == cpus()


def test_copy_keeps_configuration():
    cache = DictCache()
    original = Worker(length, with_concurrency(4), with_cache(cache), with_auto_cleanup_cache(300))
    copied = original.copy()
    assert copied is not original
    assert copied.status() == "Initiated"
    assert not copied.is_running()
    assert not copied.is_paused()
    assert not copied.is_stopped()
    assert copied.num_processing() == 0
    assert copied.num_concurrency() == 4
    assert copied.cache is cache
    assert copied.configs.cleanup_cache_interval == 300


def test_copy_with_updated_configuration():
    original = Worker(length, with_concurrency(3), with_cache(DictCache()))
    new_cache = DictCache()
    copied = original.copy(with_concurrency(6), with_cache(new_cache))
    assert copied.num_concurrency() == 6
    assert copied.cache is new_cache
    assert copied.status() is WorkerStatus.INITIATED
    assert original.num_concurrency() == 3
    assert original.cache is not new_cache


# -- tuning --------------------------------------------------------------


def test_concurrency_after_tuning(workers):
    w = workers(length, with_concurrency(2), queue=False)
    assert w.num_concurrency() == 2
    w.tune_pool(5)
    assert w.num_concurrency() == 5


def test_tune_pool_requires_running_worker():
    w = Worker(length, with_concurrency(2))
    with pytest.raises(WorkerNotRunningError):
        w.tune_pool(4)


def test_tune_pool_decrease(workers):
    w = workers(length, with_concurrency(5), queue=False)
    w.tune_pool(2)
    assert w.num_concurrency() == 2
    time.sleep(0.05)
    assert w.is_running()


@pytest.mark.parametrize("value", [0, -5])
def test_tune_pool_non_positive_uses_cpu_count(workers, value):
    w = workers(length, with_concurrency(cpus() + 2), queue=False)
    w.tune_pool(value)
    assert w.num_concurrency() == cpus()


def test_tune_pool_same_concurrency(workers):
    w = workers(length, with_concurrency(4), queue=False)
    with pytest.raises(SameConcurrencyError):
        w.tune_pool(4)
    assert w.num_concurrency() == 4


# -- processing ----------------------------------------------------------


def test_processes_result_job(workers):
    w = workers(double)
    job = submit(w, 42, "j1")
    assert job.result() == 84
    assert wait_for(lambda: job.status is JobStatus.CLOSED)
    assert wait_for(lambda: w.num_processing() == 0)
    assert len(w.queue) == 0


def test_result_worker_error_is_delivered(workers):
    def fail(data):
        raise ValueError("bad input")

    w = workers(fail)
    job = submit(w, 1)
    with pytest.raises(ValueError, match="bad input"):
        job.result()


def test_error_worker_returned_exception(workers):
    w = workers(lambda data: KeyError(data) if data < 0 else None, kind=WorkerKind.ERROR)
    failing = submit(w, -1)
    with pytest.raises(KeyError):
        failing.result()
    passing = submit(w, 1)
    assert passing.result() is None


def test_void_worker_exception_becomes_panic_error(workers):
    def explode(data):
        raise RuntimeError("boom")

    w = workers(explode, kind=WorkerKind.VOID)
    job = submit(w, 1)
    with pytest.raises(PanicError) as info:
        job.result()
    assert "void worker" in str(info.value)
    assert "boom" in str(info.value)


def test_void_worker_runs_function(workers):
    seen = []
    w = workers(seen.append, kind=WorkerKind.VOID)
    job = submit(w, "x")
    assert job.result() is None
    assert seen == ["x"]


def test_non_callable_function_is_invalid(workers):
    w = workers(42)
    job = submit(w, 1)
    with pytest.raises(InvalidWorkerTypeError):
        job.result()


def test_closed_jobs_are_skipped(workers):
    seen = []

    def record(data):
        seen.append(data)
        return data

    w = workers(record, start=False)
    closed = Job("skipped", "c")
    closed.close()
    w.queue.enqueue(closed)
    w.start()
    job = submit(w, "kept")
    assert job.result() == "kept"
    assert seen == ["kept"]


def test_concurrency_limits_processing(workers):
    gate = threading.Event()

    def blocked(data):
        gate.wait(5)
        return data

    w = workers(blocked, with_concurrency(2))
    jobs = [submit(w, i) for i in range(4)]
    assert wait_for(lambda: w.num_processing() == 2)
    time.sleep(0.05)
    assert w.num_processing() == 2
    assert len(w.queue) == 2
    gate.set()
    assert [job.result() for job in jobs] == [0, 1, 2, 3]


def test_pause_and_resume(workers):
    w = workers(double)
    w.pause()
    assert w.is_paused()
    job = submit(w, 5)
    time.sleep(0.1)
    assert len(w.queue) == 1
    w.resume()
    assert job.result() == 10
    assert w.is_running()


def test_start_twice_raises(workers):
    w = workers(double)
    with pytest.raises(WorkerRunningError):
        w.start()
    with pytest.raises(WorkerRunningError):
        w.resume()


def test_resume_starts_initiated_worker(workers):
    w = workers(double, start=False)
    w.resume()
    assert w.is_running()
    assert submit(w, 3).result() == 6


def test_stop_closes_pool_and_clears_cache(workers):
    cache = DictCache()
    w = workers(double, with_cache(cache))
    cache.store("k", "v")
    assert submit(w, 1).result() == 2
    w.stop()
    assert w.is_stopped()
    assert w.status() == "Stopped"
    assert w.num_idle_workers() == 0
    assert len(cache) == 0


def test_restart_resumes_processing(workers):
    w = workers(double)
    assert submit(w, 1).result() == 2
    w.restart()
    assert w.is_running()
    assert submit(w, 7).result() == 14


def test_start_sets_default_cleanup_interval(workers):
    w = workers(double, with_cache(DictCache()))
    assert w.configs.cleanup_cache_interval == 600


def test_auto_cleanup_removes_closed_jobs(workers):
    cache = DictCache()
    w = workers(double, with_cache(cache), with_auto_cleanup_cache(0.05))
    closed = Job(1, "a")
    closed.close()
    open_job = Job(2, "b")
    cache.store("a", closed)
    cache.store("b", open_job)
    assert wait_for(lambda: cache.load("a") is None)
    assert cache.load("b") is open_job
    assert w.is_running()


def test_serialized_jobs_are_parsed_and_cached(workers):
    cache = DictCache()
    w = workers(double, with_cache(cache))
    w.queue.enqueue(Job(5, "x").json())
    w.notify_to_pull_next_jobs()
    assert wait_for(lambda: cache.load("x") is not None and cache.load("x").is_closed)
    assert cache.load("x").output.data == 10


def test_acknowledgeable_queue_receives_ack(workers):
    w = workers(double, with_cache(DictCache()), queue=False)
    queue = AckQueue()
    w.queue = queue
    queue.enqueue(Job(3, "j1").json())
    w.notify_to_pull_next_jobs()
    assert wait_for(lambda: queue.acked == ["ack-1"])
    assert w.cache.load("j1").output.data == 6


def test_idle_workers_expire(workers):
    gate = threading.Event()

    def blocked(data):
        gate.wait(5)
        return data

    w = workers(blocked, with_concurrency(4), with_idle_worker_expiry_duration(0.2))
    jobs = [submit(w, i) for i in range(4)]
    assert wait_for(lambda: w.num_processing() == 4)
    gate.set()
    assert [job.result() for job in jobs] == [0, 1, 2, 3]
    assert wait_for(lambda: w.num_idle_workers() >= 2, timeout=1.0)
    assert wait_for(lambda: w.num_idle_workers() == 1, timeout=3.0)