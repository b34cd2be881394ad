"""
Cache-Related Exceptions

All exceptions related to caching operations (object store, in-memory cache).
Cache errors are never fatal to a request: callers log them and continue as
on a cache miss.
"""

from lingua_cache.core.exceptions.base import PipelineError


class CacheBackendError(PipelineError):
    """
    Raised when a cache tier is unavailable.

    Common causes:
    - Object store unreachable or timing out (after one retry)
    - Access denied / wrong bucket
    - Stored object is not valid JSON
    """

    error_code = "CACHE_BACKEND_ERROR"


class CacheKeyNotFoundError(CacheBackendError):
    """Raised when a key does not exist (or its TTL has passed) in the object store."""

    error_code = "CACHE_KEY_NOT_FOUND"
