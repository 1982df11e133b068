# varmq

`varmq` runs jobs through a pool of worker threads that is fed by a queue. You
write an ordinary function, wrap it in a worker and bind the worker to a queue.
Each job you add is picked up when a pool slot is free. You can wait for a
single result or for a whole batch. The package uses only the standard library.

## Workers

Each kind of worker is built by a function in `varmq.factory`. Each function
returns a `varmq.binder.WorkerBinder`:

- `new_worker(fn, *options)`: `fn` takes the job's data and returns its result.
  If `fn` raises, the exception becomes the job's error.
- `new_err_worker(fn, *options)`: `fn` reports failure only. An exception it
  raises, or an exception it returns, becomes the job's error.
- `new_void_worker(fn, *options)`: `fn` returns nothing. If it raises, the
  exception is wrapped in `varmq.utils.PanicError`. Only this kind of worker
  can be bound to a distributed queue.

A failing job never stops the worker.

The options may be a plain integer, which sets the concurrency, or any of the
option functions from `varmq.config`. A concurrency below 1 means one slot per
CPU. All durations are in seconds.

- `with_concurrency(n)`
- `with_cache(cache)`: keeps jobs so they can be looked up by id. Use
  `varmq.cache.DictCache` for an in-memory cache. Without this option a no-op
  cache is used.
- `with_auto_cleanup_cache(seconds)`: removes closed jobs from the cache at
  this interval. When a real cache is set and this option is not, the interval
  defaults to 600 seconds.
- `with_job_id_generator(fn)`: calls `fn()` to give each new job an id.
- `with_idle_worker_expiry_duration(seconds)`: closes pool threads that have
  been idle for longer than this.
- `with_min_idle_worker_ratio(percentage)`: the share of the concurrency that
  is kept in the pool as idle threads. The value is clamped to 1–100.

```python
from varmq.cache import DictCache
from varmq.config import with_cache
from varmq.factory import new_worker

worker = new_worker(lambda text: len(text), 4, with_cache(DictCache()))
```

## Queues

The binder returned by the factory binds the worker to a queue. Binding also
starts the worker.

- `bind_queue()`: an in-memory first-in, first-out queue (`varmq.queue.JobQueue`).
- `bind_priority_queue()`: an in-memory priority queue
  (`varmq.queue.PriorityJobQueue`). Among pending jobs, the lowest priority
  number is taken first. Jobs with equal priority keep the order in which they
  were added.
- `with_queue(store)` and `with_priority_queue(store)`: use your own storage.
- `with_persistent_queue(store)` and `with_persistent_priority_queue(store)`:
  use durable storage (`varmq.persistent`). Jobs are stored as JSON and are
  acknowledged when they are done. Every job needs an id, and a job without
  one raises `ValueError`. These bindings switch to a `DictCache` when no cache
  was configured.
- `with_distributed_queue(store)` and `with_distributed_priority_queue(store)`:
  use shared storage (`varmq.distributed`). The worker subscribes to the store
  and pulls jobs when it is told `"enqueued"`. These bindings are for void
  workers only, and any other kind raises `TypeError`. The handle's `add`
  returns `True` or `False`.

The protocols that storage must satisfy are in `varmq.interfaces`:
`QueueLike`, `PriorityQueueLike`, `PersistentQueueLike`,
`PersistentPriorityQueueLike`, `DistributedQueueLike` and
`DistributedPriorityQueueLike`. A store's `dequeue` raises `IndexError` when
the store is empty. The default in-memory stores are `varmq.queues.Queue` and
`varmq.queues.PriorityQueue`.

```python
from varmq.config import with_job_id
from varmq.factory import new_worker
from varmq.queue import Item

queue = new_worker(lambda n: n * 2, 8).bind_queue()

job = queue.add(21, with_job_id("answer"))
print(job.result())                     # 42; the job's error is raised instead if it failed

group = queue.add_all([Item(value=i, id=str(i)) for i in range(5)])
for result in group.results():          # Result(job_id, data, err); may be read once
    print(result.job_id, result.data)

queue.wait_and_close()
```

`add` returns `None` when the store refuses the job. A queue can also be used
as a context manager. Leaving the `with` block calls `wait_and_close()`.

```python
with new_worker(lambda n: n + 1).bind_priority_queue() as pq:
    pq.add(10, 5)
    pq.add(20, 1)
```

### Jobs

A `varmq.job.Job` has `id`, `data`, `status` (a `JobStatus`: Created, Queued,
Processing, Finished or Closed) and `output`. Other members:

- `result()` blocks until the job is done.
- `drain()` discards the results in the background.
- `json()` returns the job's id, status, input and output as JSON bytes.

A `GroupJob` from `add_all` supports `len()`, `wait()`, `results()` and
`drain()`. Reading results a second time raises
`varmq.errors.ResultConsumedError`.

## Controlling the worker

`queue.worker()` returns the bound worker. With it you can:

- pause and resume processing with `pause()`, `pause_and_wait()` and
  `resume()`;
- stop it with `stop()`, which also clears the cache, and start it again with
  `restart()`;
- change the pool size while it runs with `tune_pool(n)`. This raises
  `WorkerNotRunningError` if the worker is not running and
  `SameConcurrencyError` if the size is unchanged;
- inspect it with `status()` (a `WorkerStatus`), `num_processing()`,
  `num_concurrency()` and `num_idle_workers()`.

`copy(*options)` returns a new, unstarted binder with the same function. The
given options are applied over the original's settings.

A queue also offers `num_pending()`, `wait_until_finished()`, `purge()`,
`close()` and `wait_and_close()`.

## Looking up jobs

When a cache is configured, `queue.job_by_id(id)` returns the job that was added
with that id. `queue.groups_job_by_id(id)` does the same for jobs added through
`add_all`, and accepts the id with or without its `g:` prefix. Both raise
`varmq.errors.JobNotFoundError` when no such job exists.

## What it does not do

The package has no command-line interface. Apart from the in-memory stores, it
ships no storage backends. Persistent and distributed queues work only with a
store that you supply, such as one backed by a database or a message broker,
and that store must implement the protocols in `varmq.interfaces`.