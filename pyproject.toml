[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "varmq"
version = "0.1.0"
description = "In-process job queues served by a tunable pool of worker threads, with priorities and pluggable persistent or distributed storage"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "queue",
    "job-queue",
    "worker-pool",
    "priority-queue",
    "concurrency",
    "background-jobs",
    "task-queue",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["varmq"]

[tool.hatch.build.targets.sdist]
include = ["varmq", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP", "SIM"]

[tool.mypy]
python_version = "3.10"
warn_redundant_casts = true
check_untyped_defs = true
