"""
Asset Cache - In-memory TTL cache for theme catalogues.

The cache:
- Keys entries by theme (e.g. "gen1")
- Expires entries after a fixed time-to-live
- Tracks access metadata for stats
"""

from __future__ import annotations
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """
    A cached catalogue entry.
    """
    key: str
    data: T
    metadata: dict[str, Any] = field(default_factory=dict)

    # Cache metadata
    created_at: float = 0.0
    last_accessed: float = 0.0
    access_count: int = 0


class AssetCache(Generic[T]):
    """
    Time-bounded cache.

    Usage:
        cache = AssetCache(ttl_seconds=3600)

        data = cache.get("gen1")
        if data is None:
            data = fetch()
            cache.put("gen1", data)
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> T | None:
        """
        Get cached data for a key.

        Returns None if not cached or expired. Expired entries are dropped.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if now - entry.created_at >= self.ttl_seconds:
            del self._entries[key]
            return None

        entry.last_accessed = now
        entry.access_count += 1
        return entry.data

    def put(self, key: str, data: T, metadata: dict[str, Any] | None = None):
        """
        Cache data under a key, replacing any previous entry.
        """
        now = self._clock()
        self._entries[key] = CacheEntry(
            key=key,
            data=data,
            metadata=metadata or {},
            created_at=now,
            last_accessed=now,
            access_count=0,
        )

    def invalidate(self, key: str):
        self._entries.pop(key, None)

    def clear(self):
        """
        Clear entire cache.
        """
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "keys": self.keys(),
            "hits": sum(e.access_count for e in self._entries.values()),
        }
