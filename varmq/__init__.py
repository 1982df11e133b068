"""Job queues served by a tunable pool of worker threads, with pluggable storage."""

__version__ = "0.1.0"