"""
In-Process Result Cache (L1)

Bounded, time-expiring LRU map sitting in front of the object store.

Implementation Details:
- OrderedDict for O(1) access and LRU ordering
- Guarded by asyncio.Lock (shared across concurrent requests of one worker)
- Entries expire after a fixed TTL independent of eviction
- Values are serialized JSON strings, so a cached entry can never be
  mutated in place by a caller holding a decoded copy

This is a per-process cache: it is lost on restart. L2 is the durable
source of truth.
"""

import asyncio
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from lingua_cache.core.config.constants import L1_CACHE_MAX_SIZE, L1_CACHE_TTL


class MemoryCache:
    """
    In-memory LRU cache with per-entry TTL.

    STAGE-2.1: L1 in-memory cache
    """

    def __init__(
        self,
        max_size: int = L1_CACHE_MAX_SIZE,
        ttl_seconds: float = L1_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize LRU cache.

        Args:
            max_size: Maximum number of entries
            ttl_seconds: Lifetime of an entry from the moment it is set
            clock: Monotonic time source (injectable for tests)
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        # key -> (expires_at, value)
        self._cache: OrderedDict[str, tuple[float, str]] = OrderedDict()
        self._lock = asyncio.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    async def get(self, key: str) -> str | None:
        """
        Get value from cache. Returns None if absent or expired.

        LRU Update: Moves accessed item to end (most recently used)
        """
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._cache[key]
                self._expirations += 1
                self._misses += 1
                return None

            self._cache.move_to_end(key)
            self._hits += 1
            return value

    async def set(self, key: str, value: str) -> None:
        """
        Set value in cache. Evicts LRU item if at capacity.

        Re-setting an existing key restarts its TTL.
        """
        async with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)

            self._cache[key] = (self._clock() + self._ttl, value)

            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)
                self._evictions += 1

    async def delete(self, key: str) -> bool:
        """Delete value from cache. Returns True if it was present."""
        async with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()

    @property
    def size(self) -> int:
        """Current number of entries (expired entries count until touched)."""
        return len(self._cache)

    @property
    def max_size(self) -> int:
        return self._max_size

    def get_keys(self) -> list[str]:
        """Keys in LRU order (oldest first, newest last)."""
        return list(self._cache.keys())

    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "size": self.size,
            "max_size": self._max_size,
            "ttl_seconds": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "expirations": self._expirations,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }
