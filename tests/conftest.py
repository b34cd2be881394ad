"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.

The fixtures wire REAL pipeline objects (MemoryCache, ObjectCacheClient,
MediaDownloader, MultimodalInvoker, AIResultService) around three fakes:
    FakeS3Client     instead of boto3
    MediaServer      instead of the network (httpx.MockTransport)
    FakeModelClient  instead of the Gemini SDK
"""

import os
import sys
from pathlib import Path

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from lingua_cache.core.config.settings import Settings  # noqa: E402
from lingua_cache.infrastructure.cache.cache_manager import TwoTierCache  # noqa: E402
from lingua_cache.infrastructure.cache.memory_cache import MemoryCache  # noqa: E402
from lingua_cache.infrastructure.cache.object_cache import ObjectCacheClient  # noqa: E402
from lingua_cache.infrastructure.media.downloader import MediaDownloader  # noqa: E402
from lingua_cache.infrastructure.media.transcoder import AudioTranscoder  # noqa: E402
from lingua_cache.llm.invoker import MultimodalInvoker  # noqa: E402
from lingua_cache.services.ai_result_service import AIResultService  # noqa: E402
from tests.test_fixtures import FakeModelClient, FakeS3Client, MediaServer, ResultFactory  # noqa: E402

MB = 1024 * 1024


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Real Settings object with test values (no .env file)."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        GEMINI_API_KEY="test-key",
        SPACES_BUCKET="test-bucket",
        SPACES_KEY="key",
        SPACES_SECRET="secret",
        SINGLE_FLIGHT_ENABLED=True,
    )


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def object_cache(fake_s3) -> ObjectCacheClient:
    return ObjectCacheClient(fake_s3, "test-bucket", timeout=1.0)


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache(max_size=100, ttl_seconds=3600)


@pytest.fixture
def two_tier_cache(memory_cache, object_cache) -> TwoTierCache:
    return TwoTierCache(memory_cache, object_cache)


# ============================================================================
# Media Fixtures
# ============================================================================


@pytest.fixture
def media_server() -> MediaServer:
    return MediaServer()


@pytest.fixture
def downloader(media_server) -> MediaDownloader:
    return MediaDownloader(timeout=5.0, transport=media_server.transport)


@pytest.fixture
def transcode_calls(monkeypatch) -> list[int]:
    """
    Replace the FFmpeg subprocess with a fake that writes a 1 MB output.

    Returns the list of input sizes the transcoder was asked to shrink.
    """
    calls: list[int] = []

    async def fake_run_ffmpeg(self, input_path: Path, output_path: Path, timeout: float) -> None:
        calls.append(input_path.stat().st_size)
        output_path.write_bytes(b"\x01" * MB)

    monkeypatch.setattr(AudioTranscoder, "_run_ffmpeg", fake_run_ffmpeg)
    return calls


@pytest.fixture
def transcoder(transcode_calls) -> AudioTranscoder:
    return AudioTranscoder(threshold_bytes=20 * MB)


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def model_client() -> FakeModelClient:
    """Answers every kind with a valid payload unless re-scripted by the test."""
    return FakeModelClient(ResultFactory.answer("question"))


@pytest.fixture
def invoker(model_client, downloader) -> MultimodalInvoker:
    return MultimodalInvoker(model_client, downloader)


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def service(two_tier_cache, invoker, downloader, transcoder, test_settings) -> AIResultService:
    return AIResultService(
        cache=two_tier_cache,
        invoker=invoker,
        downloader=downloader,
        transcoder=transcoder,
        settings=test_settings,
    )


@pytest.fixture
def sample_question() -> dict:
    return {
        "question": "다음 빈칸에 들어갈 가장 알맞은 것을 고르십시오.",
        "options": ["가고", "가서", "가면", "가니까"],
        "correct_answer_index": 1,
        "question_type": "grammar",
    }
