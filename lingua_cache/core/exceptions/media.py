"""
Media Exceptions

All exceptions related to media ingestion and transcoding.
"""

from lingua_cache.core.exceptions.base import PipelineError


class MediaFetchError(PipelineError):
    """
    Raised when a remote media file cannot be downloaded.

    Common causes:
    - Non-2xx response
    - DNS / connection failure
    - Too many redirects
    - Download timeout
    """

    error_code = "AUDIO_DOWNLOAD_FAILED"


class PayloadTooLargeError(MediaFetchError):
    """Raised when a download exceeds its configured maximum size."""

    error_code = "PAYLOAD_TOO_LARGE"


class TranscodeError(PipelineError):
    """
    Raised when an oversized audio buffer cannot be transcoded.

    Fatal for the request: an oversized buffer is never passed through.
    """

    error_code = "TRANSCODE_FAILED"
