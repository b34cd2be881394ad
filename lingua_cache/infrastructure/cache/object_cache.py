"""
Object Cache Client (L2)

Thin, retryable JSON client over S3-compatible object storage
(DigitalOcean Spaces, MinIO, AWS S3).

Operations:
    exists(key)                         HEAD, False for 404 or expired
    get_json(key)                       GET, CacheKeyNotFoundError for 404 or expired
    put_json(key, value)                PUT, overwrite semantics
    put_json_with_ttl(key, value, ttl)  PUT with Cache-Control/Expires and expiry metadata
    delete(key)                         DELETE, idempotent

Resilience:
- Every call is bounded by a short timeout (OBJECT_STORE_TIMEOUT)
- Transient failures (connection errors, timeouts, 5xx, throttling) are
  retried exactly once with tenacity, then surfaced as CacheBackendError
- botocore's own retry loop is disabled so the retry budget stays at one

Object stores do not expire objects on their own. TTL-written objects carry
an ``expires-at`` metadata entry; readers treat an object past that instant
as absent.
"""

import asyncio
import time
from collections.abc import Callable
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any

import orjson
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from lingua_cache.core.config.constants import (
    OBJECT_EXPIRES_AT_METADATA,
    OBJECT_STORE_MAX_ATTEMPTS,
    OBJECT_STORE_TIMEOUT,
    Stage,
)
from lingua_cache.core.exceptions import CacheBackendError, CacheKeyNotFoundError, ConfigurationError
from lingua_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_TRANSIENT_CODES = {
    "RequestTimeout",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "InternalError",
    "ServiceUnavailable",
}
_TRANSIENT_BOTO_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _status_code(exc: ClientError) -> int:
    return int(exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) or 0)


def is_not_found(exc: BaseException) -> bool:
    """True for a ClientError meaning the key does not exist."""
    return isinstance(exc, ClientError) and (
        _error_code(exc) in _NOT_FOUND_CODES or _status_code(exc) == 404
    )


def is_transient(exc: BaseException) -> bool:
    """
    Decide whether an object-store failure is worth one retry.

    Retry: timeouts, connection failures, 5xx and throttling.
    Don't retry: 404, access denied, bad request (retrying cannot help).
    """
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return True
    if isinstance(exc, _TRANSIENT_BOTO_ERRORS):
        return True
    if isinstance(exc, ClientError):
        return _error_code(exc) in _TRANSIENT_CODES or _status_code(exc) >= 500
    return False


class ObjectCacheClient:
    """
    JSON get/put/exists/delete against one bucket.

    STAGE-OS: Object store operations
    """

    def __init__(
        self,
        s3_client: Any,
        bucket: str,
        timeout: float = OBJECT_STORE_TIMEOUT,
        max_attempts: int = OBJECT_STORE_MAX_ATTEMPTS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            s3_client: A boto3 S3 client (or anything with the same methods)
            bucket: Bucket holding cached results
            timeout: Per-call timeout in seconds
            max_attempts: Total attempts per call (2 = one retry)
            clock: Wall-clock source for TTL metadata
        """
        self._s3 = s3_client
        self._bucket = bucket
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._clock = clock

    @classmethod
    def from_settings(cls, settings) -> "ObjectCacheClient":
        """
        Build a client from application settings.

        Raises:
            ConfigurationError: If bucket or credentials are missing
        """
        import boto3
        from botocore.config import Config

        store = settings.object_store
        if not store.SPACES_BUCKET:
            raise ConfigurationError("SPACES_BUCKET is not configured")
        if not store.SPACES_KEY or not store.SPACES_SECRET:
            raise ConfigurationError("SPACES_KEY and SPACES_SECRET must be configured")

        client = boto3.client(
            "s3",
            endpoint_url=store.SPACES_ENDPOINT,
            region_name=store.SPACES_REGION,
            aws_access_key_id=store.SPACES_KEY,
            aws_secret_access_key=store.SPACES_SECRET,
            config=Config(
                connect_timeout=store.OBJECT_STORE_TIMEOUT,
                read_timeout=store.OBJECT_STORE_TIMEOUT,
                retries={"total_max_attempts": 1},
            ),
        )
        return cls(client, store.SPACES_BUCKET, timeout=store.OBJECT_STORE_TIMEOUT)

    @property
    def bucket(self) -> str:
        return self._bucket

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def _run(self, operation: str, key: str, fn: Callable[[], Any]) -> Any:
        """
        Run a blocking boto3 call in a worker thread with timeout and one retry.

        Raises:
            CacheKeyNotFoundError: The key does not exist
            CacheBackendError: Any other failure, after the retry budget is spent
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=0.1, max=1.0) + wait_random(0, 0.1),
            retry=retry_if_exception(is_transient),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        log_stage(
                            logger, Stage.RETRY, "Retrying object store call",
                            level="warning", operation=operation, key=key,
                        )
                    return await asyncio.wait_for(asyncio.to_thread(fn), timeout=self._timeout)
        except CacheBackendError:
            raise
        except ClientError as e:
            if is_not_found(e):
                raise CacheKeyNotFoundError(
                    f"Object not found: {key}", details={"key": key, "operation": operation}
                ) from e
            raise CacheBackendError.from_exception(
                e, message=f"Object store {operation} failed for {key}", key=key, operation=operation
            ) from e
        except (BotoCoreError, asyncio.TimeoutError, TimeoutError) as e:
            raise CacheBackendError.from_exception(
                e, message=f"Object store {operation} failed for {key}", key=key, operation=operation
            ) from e

    def _is_expired(self, metadata: dict[str, str] | None) -> bool:
        if not metadata:
            return False
        raw = metadata.get(OBJECT_EXPIRES_AT_METADATA)
        if raw is None:
            return False
        try:
            return self._clock() >= float(raw)
        except ValueError:
            return False

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def exists(self, key: str) -> bool:
        """True if the object exists and has not passed its TTL."""
        try:
            head = await self._run(
                "exists", key, lambda: self._s3.head_object(Bucket=self._bucket, Key=key)
            )
        except CacheKeyNotFoundError:
            return False
        return not self._is_expired(head.get("Metadata"))

    async def get_json(self, key: str) -> Any:
        """
        Download and decode a JSON object.

        Raises:
            CacheKeyNotFoundError: Missing or expired object
            CacheBackendError: Transport failure or undecodable body
        """

        def _fetch() -> tuple[bytes, dict[str, str]]:
            response = self._s3.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read(), response.get("Metadata") or {}

        body, metadata = await self._run("get", key, _fetch)

        if self._is_expired(metadata):
            raise CacheKeyNotFoundError(f"Object expired: {key}", details={"key": key})

        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise CacheBackendError.from_exception(
                e, message=f"Stored object is not valid JSON: {key}", key=key
            ) from e

    async def put_json(self, key: str, value: Any) -> None:
        """Serialize and upload ``value`` (overwrites any existing object)."""
        body = orjson.dumps(value)
        await self._run(
            "put",
            key,
            lambda: self._s3.put_object(
                Bucket=self._bucket, Key=key, Body=body, ContentType="application/json"
            ),
        )
        log_stage(logger, Stage.OBJECT_STORE, "Object stored", level="debug", key=key, size=len(body))

    async def put_json_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> None:
        """
        Upload a self-expiring JSON object (derived artifacts such as snapshots).

        The object carries HTTP caching headers for CDN consumers and an
        ``expires-at`` metadata entry that exists()/get_json() honour.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        body = orjson.dumps(value)
        expires_at = self._clock() + ttl_seconds
        expires_http = datetime.fromtimestamp(expires_at, tz=timezone.utc)

        await self._run(
            "put_ttl",
            key,
            lambda: self._s3.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType="application/json",
                CacheControl=f"public, max-age={ttl_seconds}",
                Expires=expires_http,
                Metadata={OBJECT_EXPIRES_AT_METADATA: str(int(expires_at))},
            ),
        )
        log_stage(
            logger, Stage.OBJECT_STORE, "Object stored with TTL", level="debug",
            key=key, ttl_seconds=ttl_seconds, expires=format_datetime(expires_http, usegmt=True),
        )

    async def delete(self, key: str) -> None:
        await self._run(
            "delete", key, lambda: self._s3.delete_object(Bucket=self._bucket, Key=key)
        )

    async def health_check(self) -> dict[str, Any]:
        start_time = time.perf_counter()
        try:
            await self._run(
                "health", self._bucket, lambda: self._s3.head_bucket(Bucket=self._bucket)
            )
        except CacheBackendError as e:
            return {"status": "unhealthy", "bucket": self._bucket, "error": e.message}
        return {
            "status": "healthy",
            "bucket": self._bucket,
            "latency_ms": round((time.perf_counter() - start_time) * 1000, 2),
        }
