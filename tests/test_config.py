import pytest

from varmq.cache import DictCache, get_cache
from varmq.config import (
    Configs,
    JobConfigs,
    load_configs,
    load_job_configs,
    merge_configs,
    new_config,
    safe_concurrency,
    with_auto_cleanup_cache,
    with_cache,
    with_concurrency,
    with_idle_worker_expiry_duration,
    with_job_id,
    with_job_id_generator,
    with_min_idle_worker_ratio,
    with_required_job_id,
)
from varmq.utils import cpus


def test_new_config_defaults():
    c = new_config()
    assert c.concurrency == 1
    assert c.cache is get_cache()
    assert c.cleanup_cache_interval == 0
    assert c.job_id_generator() == ""


def test_with_cache():
    mock_cache = get_cache()
    c = new_config()
    with_cache(mock_cache)(c)
    assert c.cache is mock_cache


@pytest.mark.parametrize("concurrency, expected", [(0, cpus()), (-1, cpus()), (5, 5)])
def test_with_concurrency(concurrency, expected):
    c = new_config()
    with_concurrency(concurrency)(c)
    assert c.concurrency == expected


@pytest.mark.parametrize("concurrency, expected", [(0, cpus()), (-1, cpus()), (5, 5)])
def test_safe_concurrency(concurrency, expected):
    assert safe_concurrency(concurrency) == expected


def test_with_auto_cleanup_cache():
    duration = 5 * 60
    c = new_config()
    with_auto_cleanup_cache(duration)(c)
    assert c.cleanup_cache_interval == duration


def test_with_job_id_generator():
    c = new_config()
    with_job_id_generator(lambda: "test-job-id")(c)
    assert c.job_id_generator() == "test-job-id"


def test_with_idle_worker_expiry_duration():
    duration = 10 * 60
    c = new_config()
    with_idle_worker_expiry_duration(duration)(c)
    assert c.idle_worker_expiry_duration == duration


@pytest.mark.parametrize(
    "percentage, expected", [(0, 1), (150, 100), (20, 20), (1, 1), (100, 100)]
)
def test_with_min_idle_worker_ratio(percentage, expected):
    c = new_config()
    with_min_idle_worker_ratio(percentage)(c)
    assert c.min_idle_worker_ratio == expected


def test_load_configs():
    assert load_configs().concurrency == 1
    assert load_configs(5).concurrency == 5

    mock_cache = get_cache()
    duration = 10 * 60
    c = load_configs(
        with_concurrency(3),
        with_cache(mock_cache),
        with_auto_cleanup_cache(duration),
        with_job_id_generator(lambda: "custom-id"),
    )
    assert c.concurrency == 3
    assert c.cache is mock_cache
    assert c.cleanup_cache_interval == duration
    assert c.job_id_generator() == "custom-id"

    c = load_configs(4, with_cache(mock_cache))
    assert c.concurrency == 4
    assert c.cache is mock_cache


def test_merge_configs():
    base = Configs(concurrency=1, cache=get_cache(), cleanup_cache_interval=0)
    assert merge_configs(base).concurrency == base.concurrency
    assert merge_configs(base, 5).concurrency == 5

    new_cache = DictCache()
    c = merge_configs(base, with_cache(new_cache), with_concurrency(3))
    assert c.concurrency == 3
    assert c.cache is new_cache


def test_merge_configs_leaves_base_untouched():
    base = new_config()
    merge_configs(base, with_concurrency(7), with_cache(DictCache()))
    assert base.concurrency == 1
    assert base.cache is get_cache()


def test_load_job_configs_uses_generator_and_overrides():
    qc = load_configs(with_job_id_generator(lambda: "generated"))
    assert load_job_configs(qc).id == "generated"
    assert load_job_configs(qc, with_job_id("explicit")).id == "explicit"
    assert load_job_configs(qc, with_job_id("")).id == "generated"


def test_with_required_job_id():
    config = JobConfigs(id="job-1")
    assert with_required_job_id(config) is config
    with pytest.raises(ValueError, match="job id is required"):
        with_required_job_id(JobConfigs())