"""
Cache Infrastructure

- fingerprint: deterministic cache keys and object-store paths
- memory_cache: L1 in-process LRU with TTL
- object_cache: L2 S3-compatible JSON client
- cache_manager: two-tier coordination
"""

from lingua_cache.infrastructure.cache.cache_manager import CacheObserver, TwoTierCache
from lingua_cache.infrastructure.cache.memory_cache import MemoryCache
from lingua_cache.infrastructure.cache.object_cache import ObjectCacheClient

__all__ = ["CacheObserver", "MemoryCache", "ObjectCacheClient", "TwoTierCache"]
