"""
Unit Tests for ObjectCacheClient (L2)

Runs the real client against FakeS3Client: JSON round-trips, not-found
handling, TTL metadata, and the single-retry policy.
"""

import time
import warnings

import pytest
from botocore.exceptions import EndpointConnectionError

from lingua_cache.core.config.settings import Settings
from lingua_cache.core.exceptions import CacheBackendError, CacheKeyNotFoundError, ConfigurationError
from lingua_cache.infrastructure.cache.object_cache import ObjectCacheClient, is_not_found, is_transient
from tests.test_fixtures import FakeS3Client, client_error


@pytest.mark.unit
class TestErrorClassification:
    """Which failures are worth a retry."""

    @pytest.mark.parametrize(
        "error",
        [
            client_error("InternalError", 500),
            client_error("SlowDown", 503),
            client_error("Whatever", 502),
            EndpointConnectionError(endpoint_url="https://spaces.test"),
            TimeoutError(),
        ],
    )
    def test_transient(self, error):
        assert is_transient(error)

    @pytest.mark.parametrize("error", [client_error("AccessDenied", 403), client_error("NoSuchKey", 404), ValueError()])
    def test_not_transient(self, error):
        assert not is_transient(error)

    def test_not_found_by_code_or_status(self):
        assert is_not_found(client_error("NoSuchKey", 404))
        assert is_not_found(client_error("404", 404))
        assert not is_not_found(client_error("AccessDenied", 403))


@pytest.mark.unit
class TestObjectCacheClient:
    """Test suite for ObjectCacheClient."""

    @pytest.mark.asyncio
    async def test_put_then_get_roundtrip(self, object_cache, fake_s3):
        value = {"translation": "你好", "wrongOptions": {"1": "x"}}

        await object_cache.put_json("ai-cache/topik/abc.json", value)

        assert await object_cache.get_json("ai-cache/topik/abc.json") == value
        assert fake_s3.objects["ai-cache/topik/abc.json"]["ContentType"] == "application/json"

    @pytest.mark.asyncio
    async def test_put_overwrites(self, object_cache):
        await object_cache.put_json("k.json", {"v": 1})
        await object_cache.put_json("k.json", {"v": 2})

        assert await object_cache.get_json("k.json") == {"v": 2}

    @pytest.mark.asyncio
    async def test_exists(self, object_cache):
        assert await object_cache.exists("k.json") is False
        await object_cache.put_json("k.json", {"v": 1})
        assert await object_cache.exists("k.json") is True

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, object_cache):
        with pytest.raises(CacheKeyNotFoundError):
            await object_cache.get_json("missing.json")

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, object_cache):
        await object_cache.put_json("k.json", {"v": 1})
        await object_cache.delete("k.json")
        await object_cache.delete("k.json")

        assert await object_cache.exists("k.json") is False

    @pytest.mark.asyncio
    async def test_invalid_json_body_is_backend_error(self, object_cache, fake_s3):
        fake_s3.objects["bad.json"] = {"Body": b"{not json", "ContentType": None, "Metadata": {}, "Extra": {}}

        with pytest.raises(CacheBackendError):
            await object_cache.get_json("bad.json")


@pytest.mark.unit
class TestObjectCacheRetry:
    """Transient failures are retried exactly once."""

    @pytest.mark.asyncio
    async def test_transient_failure_retried_once(self, object_cache, fake_s3):
        await object_cache.put_json("k.json", {"v": 1})
        fake_s3.fail_next("get_object", client_error("ServiceUnavailable", 503))

        assert await object_cache.get_json("k.json") == {"v": 1}
        assert fake_s3.count("get_object") == 2

    @pytest.mark.asyncio
    async def test_retry_backoff_emits_no_deprecation_warning(self, object_cache, fake_s3):
        fake_s3.fail_next("put_object", client_error("SlowDown", 503))

        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            await object_cache.put_json("k.json", {"v": 1})

        assert fake_s3.count("put_object") == 2

    @pytest.mark.asyncio
    async def test_second_transient_failure_surfaces(self, object_cache, fake_s3):
        fake_s3.fail_next(
            "put_object",
            client_error("InternalError", 500),
            client_error("InternalError", 500),
        )

        with pytest.raises(CacheBackendError):
            await object_cache.put_json("k.json", {"v": 1})
        assert fake_s3.count("put_object") == 2

    @pytest.mark.asyncio
    async def test_permanent_failure_not_retried(self, object_cache, fake_s3):
        fake_s3.fail_next("put_object", client_error("AccessDenied", 403))

        with pytest.raises(CacheBackendError) as exc_info:
            await object_cache.put_json("k.json", {"v": 1})
        assert fake_s3.count("put_object") == 1
        assert not isinstance(exc_info.value, CacheKeyNotFoundError)

    @pytest.mark.asyncio
    async def test_slow_call_times_out(self):
        class SlowS3(FakeS3Client):
            def head_object(self, Bucket, Key):
                time.sleep(0.3)
                return super().head_object(Bucket, Key)

        client = ObjectCacheClient(SlowS3(), "b", timeout=0.05, max_attempts=1)

        with pytest.raises(CacheBackendError):
            await client.exists("k.json")


@pytest.mark.unit
class TestObjectCacheTTL:
    """Self-expiring objects."""

    @pytest.mark.asyncio
    async def test_ttl_object_carries_headers_and_metadata(self, fake_s3):
        client = ObjectCacheClient(fake_s3, "b", clock=lambda: 1_000_000.0)

        await client.put_json_with_ttl("snapshots/trending.json", {"items": []}, 300)

        stored = fake_s3.objects["snapshots/trending.json"]
        assert stored["Metadata"]["expires-at"] == "1000300"
        assert stored["Extra"]["CacheControl"] == "public, max-age=300"
        assert "Expires" in stored["Extra"]

    @pytest.mark.asyncio
    async def test_expired_object_reads_as_absent(self, fake_s3):
        now = [1_000_000.0]
        client = ObjectCacheClient(fake_s3, "b", clock=lambda: now[0])
        await client.put_json_with_ttl("s.json", {"v": 1}, 60)

        assert await client.exists("s.json") is True
        now[0] += 61

        assert await client.exists("s.json") is False
        with pytest.raises(CacheKeyNotFoundError):
            await client.get_json("s.json")

    @pytest.mark.asyncio
    async def test_non_positive_ttl_rejected(self, object_cache):
        with pytest.raises(ValueError):
            await object_cache.put_json_with_ttl("s.json", {"v": 1}, 0)


@pytest.mark.unit
class TestObjectCacheHealthAndConfig:

    @pytest.mark.asyncio
    async def test_health_check_healthy(self, object_cache):
        health = await object_cache.health_check()

        assert health["status"] == "healthy"
        assert health["bucket"] == "test-bucket"

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self, object_cache, fake_s3):
        fake_s3.fail_next("head_bucket", client_error("AccessDenied", 403))

        assert (await object_cache.health_check())["status"] == "unhealthy"

    def test_from_settings_requires_bucket(self):
        settings = Settings(_env_file=None, SPACES_BUCKET=None, SPACES_KEY="k", SPACES_SECRET="s")

        with pytest.raises(ConfigurationError):
            ObjectCacheClient.from_settings(settings)

    def test_from_settings_builds_client(self):
        settings = Settings(
            _env_file=None,
            SPACES_BUCKET="bucket",
            SPACES_KEY="k",
            SPACES_SECRET="s",
            SPACES_ENDPOINT="https://sgp1.digitaloceanspaces.com",
        )

        client = ObjectCacheClient.from_settings(settings)

        assert client.bucket == "bucket"
