"""
Key/value cache adapters used as the distributed tier of the key cache.

Anything with ``get(key)`` and ``set(key, value, ttl_seconds)`` works; no
transactional guarantee is expected. Concurrent writers may race on a key
refresh, which is harmless because they all store the same fetched value.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class CacheAdapter(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...


class InMemoryCache:
    """
    Process-local TTL cache.

    Useful in tests and single-process deployments; share one instance across
    ``Client`` objects to get the cross-request behaviour of a real cache.
    """

    def __init__(self, now: Callable[[], float] | None = None) -> None:
        self._entries: dict[str, tuple[str, float]] = {}
        self._now = now or time.monotonic

    def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._now() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._now() + ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
