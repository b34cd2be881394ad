"""
Unit Tests for Core Exceptions

Tests the error hierarchy, error codes and the to_dict / with_context /
from_exception helpers.
"""

import pytest

from lingua_cache.core.exceptions import (
    CacheBackendError,
    CacheKeyNotFoundError,
    ConfigurationError,
    MediaFetchError,
    ModelInvocationError,
    ModelRateLimitError,
    ModelResponseMalformed,
    ModelTimeoutError,
    PayloadTooLargeError,
    PipelineError,
    TranscodeError,
    ValidationError,
)


@pytest.mark.unit
class TestPipelineError:
    """Test the base exception class."""

    def test_base_error_defaults(self):
        error = PipelineError("Test message")

        assert str(error) == "Test message"
        assert error.details == {}
        assert error.request_id is None
        assert error.error_code == "PIPELINE_ERROR"

    def test_details_are_copied(self):
        """External mutation of the details dict does not leak into the error."""
        details = {"url": "https://cdn.test/a.mp3"}
        error = PipelineError("boom", details=details)
        details["url"] = "changed"

        assert error.details["url"] == "https://cdn.test/a.mp3"

    def test_to_dict_contains_code_and_type(self):
        error = MediaFetchError("download failed", request_id="req-1", details={"status_code": 404})

        data = error.to_dict()

        assert data["error_type"] == "MediaFetchError"
        assert data["error_code"] == "AUDIO_DOWNLOAD_FAILED"
        assert data["request_id"] == "req-1"
        assert data["details"] == {"status_code": 404}

    def test_with_context_chains(self):
        error = TranscodeError("ffmpeg failed").with_context(returncode=1)

        assert isinstance(error, TranscodeError)
        assert error.details["returncode"] == 1

    def test_from_exception_wraps_original(self):
        original = TimeoutError("read timed out")

        error = CacheBackendError.from_exception(original, message="get failed", key="k")

        assert isinstance(error, CacheBackendError)
        assert error.message == "get failed"
        assert error.details["original_error"] == "TimeoutError"
        assert error.details["key"] == "k"

    def test_repr_includes_details(self):
        error = ValidationError("bad", request_id="r", details={"field": "options"})
        assert "request_id='r'" in repr(error)
        assert "options" in repr(error)


@pytest.mark.unit
class TestErrorHierarchy:
    """Callers catch families of errors; the hierarchy must support that."""

    @pytest.mark.parametrize(
        "error_class, parent",
        [
            (PayloadTooLargeError, MediaFetchError),
            (ModelTimeoutError, ModelInvocationError),
            (ModelRateLimitError, ModelInvocationError),
            (CacheKeyNotFoundError, CacheBackendError),
            (ConfigurationError, PipelineError),
        ],
    )
    def test_subclassing(self, error_class, parent):
        assert issubclass(error_class, parent)

    def test_malformed_response_is_not_an_invocation_error(self):
        """A bad answer is a different failure from a failed call."""
        assert not issubclass(ModelResponseMalformed, ModelInvocationError)

    def test_error_codes_are_unique(self):
        classes = [
            ValidationError, MediaFetchError, PayloadTooLargeError, TranscodeError,
            ModelInvocationError, ModelTimeoutError, ModelRateLimitError, ModelResponseMalformed,
            CacheBackendError, CacheKeyNotFoundError, ConfigurationError,
        ]
        codes = [cls.error_code for cls in classes]
        assert len(codes) == len(set(codes))
