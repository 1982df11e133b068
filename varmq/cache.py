"""Job caches: a shared no-op cache and a thread-safe dictionary cache."""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Any, Callable, Dict, Hashable, Mapping, Optional

_default_cache: Optional["NullCache"] = None

_EMPTY: Mapping[Hashable, Any] = MappingProxyType({})


class NullCache:
    """A cache that keeps nothing: every lookup misses and stores are dropped."""

    def __init__(self) -> None:
        self._entries: Mapping[Hashable, Any] = _EMPTY

    def load(self, key: Hashable) -> Any:
        """Return None; nothing is ever stored."""
        return self._entries.get(key)

    def store(self, key: Hashable, value: Any) -> None:
        """Check the key like a real cache would, then drop the entry."""
        hash(key)

    def delete(self, key: Hashable) -> None:
        """Check the key like a real cache would; there is nothing to remove."""
        hash(key)

    def range(self, fn: Callable[[Hashable, Any], bool]) -> None:
        """Call ``fn`` for every entry, of which there are none."""
        for key, value in self._entries.items():
            if not fn(key, value):
                break

    def clear(self) -> None:
        """Reset to the empty state."""
        self._entries = _EMPTY


class DictCache:
    """A thread-safe in-memory cache."""

    def __init__(self) -> None:
        self._data: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def load(self, key: Hashable) -> Any:
        """Return the value stored under ``key``, or None."""
        with self._lock:
            return self._data.get(key)

    def store(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._data.pop(key, None)

    def range(self, fn: Callable[[Hashable, Any], bool]) -> None:
        """Call ``fn(key, value)`` for each entry until it returns False."""
        with self._lock:
            entries = list(self._data.items())
        for key, value in entries:
            if not fn(key, value):
                break

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


def get_cache() -> NullCache:
    """Return the shared no-op cache."""
    global _default_cache
    if _default_cache is None:
        _default_cache = NullCache()
    return _default_cache