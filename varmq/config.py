"""Worker and job configuration, built from option functions."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable

from .cache import get_cache
from .utils import cpus


def _empty_id() -> str:
    return ""


@dataclass
class Configs:
    """Settings shared by a worker and the queues bound to it.

    Durations are in seconds; zero disables the related feature.
    """

    concurrency: int = 1
    cache: Any = field(default_factory=get_cache)
    cleanup_cache_interval: float = 0.0
    job_id_generator: Callable[[], str] = field(default=_empty_id)
    idle_worker_expiry_duration: float = 0.0
    min_idle_worker_ratio: int = 0


@dataclass
class JobConfigs:
    """Settings for a single job."""

    id: str = ""


ConfigFunc = Callable[[Configs], None]
JobConfigFunc = Callable[[JobConfigs], None]


def safe_concurrency(concurrency: int) -> int:
    """Return ``concurrency``, or the CPU count when it is below 1."""
    if concurrency < 1:
        return cpus()
    return int(concurrency)


def new_config() -> Configs:
    """Return the default configuration."""
    return Configs()


def merge_configs(base: Configs, *args: Any) -> Configs:
    """Return a copy of ``base`` with option functions and integer concurrencies applied."""
    merged = dataclasses.replace(base)
    for option in args:
        if isinstance(option, bool):
            continue
        if isinstance(option, int):
            merged.concurrency = safe_concurrency(option)
        elif callable(option):
            option(merged)
    return merged


def load_configs(*args: Any) -> Configs:
    """Build a configuration from the defaults and the given options."""
    return merge_configs(new_config(), *args)


def with_idle_worker_expiry_duration(duration: float) -> ConfigFunc:
    """Close idle pool workers that have been unused for ``duration`` seconds."""

    def apply(config: Configs) -> None:
        config.idle_worker_expiry_duration = duration

    return apply


def with_min_idle_worker_ratio(percentage: int) -> ConfigFunc:
    """Keep this percentage of the concurrency as idle workers; clamped to 1..100."""
    percentage = max(1, min(100, int(percentage)))

    def apply(config: Configs) -> None:
        config.min_idle_worker_ratio = percentage

    return apply


def with_cache(cache: Any) -> ConfigFunc:
    def apply(config: Configs) -> None:
        config.cache = cache

    return apply


def with_concurrency(concurrency: int) -> ConfigFunc:
    def apply(config: Configs) -> None:
        config.concurrency = safe_concurrency(concurrency)

    return apply


def with_auto_cleanup_cache(duration: float) -> ConfigFunc:
    """Remove closed jobs from the cache every ``duration`` seconds."""

    def apply(config: Configs) -> None:
        config.cleanup_cache_interval = duration

    return apply


def with_job_id_generator(fn: Callable[[], str]) -> ConfigFunc:
    def apply(config: Configs) -> None:
        config.job_id_generator = fn

    return apply


def with_job_id(job_id: str) -> JobConfigFunc:
    """Give a job an explicit id; an empty id keeps the generated one."""

    def apply(config: JobConfigs) -> None:
        if job_id:
            config.id = job_id

    return apply


def load_job_configs(queue_config: Configs, *args: JobConfigFunc) -> JobConfigs:
    """Build job settings, starting from an id produced by the queue's generator."""
    config = JobConfigs(id=queue_config.job_id_generator())
    for option in args:
        option(config)
    return config


def with_required_job_id(config: JobConfigs) -> JobConfigs:
    """Return ``config``; raise ValueError if it has no id."""
    if not config.id:
        raise ValueError("job id is required for persistent queue")
    return config