"""
Unit Tests for the Startup Preflight
"""

import pytest

import start_app
from lingua_cache.core.config.settings import Settings


def make_settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": "development",
        "GEMINI_API_KEY": "key",
        "SPACES_BUCKET": "bucket",
        "SPACES_KEY": "key",
        "SPACES_SECRET": "secret",
        **overrides,
    }
    return Settings(_env_file=None, **values)


@pytest.fixture
def ffmpeg_present(monkeypatch):
    monkeypatch.setattr(start_app.shutil, "which", lambda name: f"/usr/bin/{name}")


@pytest.mark.unit
class TestPreflight:

    def test_fully_configured(self, ffmpeg_present):
        assert start_app.preflight(make_settings()) == ([], [])

    def test_missing_api_key_blocks_startup(self, ffmpeg_present):
        errors, _ = start_app.preflight(make_settings(GEMINI_API_KEY=""))

        assert errors == ["GEMINI_API_KEY is not set"]

    def test_missing_bucket_warns_outside_production(self, ffmpeg_present):
        errors, warnings = start_app.preflight(make_settings(SPACES_BUCKET=""))

        assert errors == []
        assert "in-process cache only" in warnings[0]

    def test_missing_bucket_blocks_production(self, ffmpeg_present):
        errors, _ = start_app.preflight(make_settings(SPACES_BUCKET="", ENVIRONMENT="production"))

        assert len(errors) == 1

    def test_missing_ffmpeg_warns(self, monkeypatch):
        monkeypatch.setattr(start_app.shutil, "which", lambda name: None)

        errors, warnings = start_app.preflight(make_settings(FFMPEG_BINARY="ffmpeg7"))

        assert errors == []
        assert warnings == ["'ffmpeg7' not found on PATH; long audio cannot be transcoded"]
