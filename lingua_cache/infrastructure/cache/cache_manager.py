"""
Two-Tier Cache Manager

Architecture:
    TwoTierCache (Public API)
        ├── MemoryCache (L1, in-process LRU with TTL)
        ├── ObjectCacheClient (L2, S3-compatible object store)
        └── CacheObserver (hit/miss counters and stage logging)

Consistency rules:
    GET: L1 → L2 (warm L1 on L2 hit) → miss
    SET: L2 first, then L1; both best-effort
    DELETE: both tiers

Cache tiers never fail a request. An unreachable object store degrades to
"miss" on read and to "skip population" on write; both are logged.
"""

from typing import Any, Literal

import orjson

from lingua_cache.core.config.constants import Stage
from lingua_cache.core.exceptions import CacheBackendError, CacheKeyNotFoundError
from lingua_cache.core.logging.logger import get_logger, log_stage
from lingua_cache.infrastructure.cache.memory_cache import MemoryCache
from lingua_cache.infrastructure.cache.object_cache import ObjectCacheClient

logger = get_logger(__name__)

CacheSource = Literal["l1", "l2", "miss"]


class CacheObserver:
    """
    Tracks cache performance metrics and logs operations.

    Kept separate so the tier logic stays free of logging concerns.
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger
        self._hits_l1 = 0
        self._hits_l2 = 0
        self._misses = 0
        self._l2_errors = 0

    def record_get(self, source: CacheSource, key: str) -> None:
        if source == "l1":
            self._hits_l1 += 1
            log_stage(self._logger, Stage.L1_LOOKUP, "L1 cache hit", cache_key=key)
        elif source == "l2":
            self._hits_l2 += 1
            log_stage(self._logger, Stage.L2_LOOKUP, "L2 cache hit", cache_key=key)
        else:
            self._misses += 1
            log_stage(self._logger, Stage.L2_LOOKUP, "Cache miss", cache_key=key)

    def record_backend_error(self, operation: str, key: str, error: CacheBackendError) -> None:
        self._l2_errors += 1
        log_stage(
            self._logger,
            Stage.OBJECT_STORE,
            "Object store unavailable, continuing without L2",
            level="warning",
            operation=operation,
            cache_key=key,
            error=error.message,
        )

    def get_stats(self) -> dict[str, Any]:
        total = self._hits_l1 + self._hits_l2 + self._misses
        hit_rate = (self._hits_l1 + self._hits_l2) / total if total > 0 else 0.0
        return {
            "l1_hits": self._hits_l1,
            "l2_hits": self._hits_l2,
            "misses": self._misses,
            "l2_errors": self._l2_errors,
            "total_requests": total,
            "hit_rate": round(hit_rate, 3),
            "l1_hit_rate": round(self._hits_l1 / total, 3) if total > 0 else 0.0,
        }


class TwoTierCache:
    """
    L1 (memory) + L2 (object store) cache keyed by object-store path.

    Values are JSON-compatible dicts. L1 holds their serialized form so every
    reader decodes a private copy.

    Usage:
        cache = TwoTierCache(MemoryCache(), ObjectCacheClient.from_settings(settings))

        value, source = await cache.get("ai-cache/topik/<hash>.json")
        await cache.set("ai-cache/topik/<hash>.json", payload)
    """

    def __init__(self, l1: MemoryCache, l2: ObjectCacheClient | None, observer: CacheObserver | None = None):
        """
        Args:
            l1: In-process cache
            l2: Object-store client, or None to run L1-only (local development)
            observer: Metrics/logging sink
        """
        self._l1 = l1
        self._l2 = l2
        self._observer = observer or CacheObserver()

    @property
    def l1(self) -> MemoryCache:
        return self._l1

    @property
    def l2(self) -> ObjectCacheClient | None:
        return self._l2

    async def get(self, key: str) -> tuple[dict[str, Any] | None, CacheSource]:
        """
        Look a key up in L1, then L2.

        STAGE-2.1: L1 lookup
        STAGE-2.2: L2 lookup (if L1 miss)

        Returns:
            (value, source); value is None on a miss or when L2 is unavailable
        """
        raw = await self._l1.get(key)
        if raw is not None:
            self._observer.record_get("l1", key)
            return orjson.loads(raw), "l1"

        value = await self._get_l2(key)
        if value is None:
            self._observer.record_get("miss", key)
            return None, "miss"

        # Warm L1 so the next request skips the network
        await self._l1.set(key, orjson.dumps(value).decode("utf-8"))
        self._observer.record_get("l2", key)
        return value, "l2"

    async def get_l1(self, key: str) -> dict[str, Any] | None:
        """L1-only lookup (no network)."""
        raw = await self._l1.get(key)
        return orjson.loads(raw) if raw is not None else None

    async def _get_l2(self, key: str) -> dict[str, Any] | None:
        if self._l2 is None:
            return None
        try:
            if not await self._l2.exists(key):
                return None
            return await self._l2.get_json(key)
        except CacheKeyNotFoundError:
            # Deleted between exists() and get_json()
            return None
        except CacheBackendError as e:
            self._observer.record_backend_error("get", key, e)
            return None

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> bool:
        """
        Populate both tiers. Best-effort: never raises for backend failures.

        STAGE-2.3: Cache population

        The value must already be fully validated; callers never pass
        partial results here.

        Returns:
            True if L2 accepted the write (or there is no L2), False otherwise
        """
        serialized = orjson.dumps(value).decode("utf-8")
        persisted = True

        if self._l2 is not None:
            try:
                if ttl_seconds:
                    await self._l2.put_json_with_ttl(key, value, ttl_seconds)
                else:
                    await self._l2.put_json(key, value)
            except CacheBackendError as e:
                self._observer.record_backend_error("put", key, e)
                persisted = False

        await self._l1.set(key, serialized)
        log_stage(logger, Stage.CACHE_POPULATION, "Cache set", cache_key=key, persisted=persisted)
        return persisted

    async def delete(self, key: str) -> bool:
        """
        Remove a key from both tiers.

        STAGE-2.4: Cache invalidation

        Returns:
            False if the L2 delete failed (L1 is cleared regardless)
        """
        await self._l1.delete(key)
        if self._l2 is None:
            return True
        try:
            await self._l2.delete(key)
        except CacheBackendError as e:
            self._observer.record_backend_error("delete", key, e)
            return False
        log_stage(logger, Stage.CACHE_INVALIDATION, "Cache invalidated", cache_key=key)
        return True

    def stats(self) -> dict[str, Any]:
        l1_stats = self._l1.stats()
        return {
            **self._observer.get_stats(),
            "l1_size": l1_stats["size"],
            "l1_max_size": l1_stats["max_size"],
            "l1_capacity_utilization": round(l1_stats["size"] / l1_stats["max_size"] * 100, 2),
            "l2_configured": self._l2 is not None,
        }

    async def health_check(self) -> dict[str, Any]:
        health: dict[str, Any] = {
            "status": "healthy",
            "l1": {"status": "healthy", "size": self._l1.size, "max_size": self._l1.max_size},
            "l2": {"status": "not_configured"},
        }
        if self._l2 is None:
            health["status"] = "degraded"
            return health

        l2_health = await self._l2.health_check()
        health["l2"] = l2_health
        if l2_health.get("status") != "healthy":
            health["status"] = "degraded"
        return health
