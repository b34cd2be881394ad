"""
Base Exception Class

This module contains ONLY the base exception class that all other exceptions inherit from.
All specialized exceptions are in their respective themed modules.
"""

from typing import Any


class PipelineError(Exception):
    """
    Base exception for all AI result pipeline errors.

    All custom exceptions inherit from this class to enable:
    - Consistent error handling
    - Request ID correlation
    - Structured error logging
    - A stable machine-readable error code for API responses

    Attributes:
        message: Human-readable error message
        request_id: Request ID for correlation (if available)
        details: Additional error details (dict)
        error_code: Stable identifier, overridden by subclasses

    Example:
        raise MediaFetchError(
            "Failed to download audio",
            details={"url": "https://cdn.example.com/ep1.mp3", "status_code": 404},
        )
    """

    error_code = "PIPELINE_ERROR"

    def __init__(
        self, message: str, request_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.request_id = request_id
        self.details = (details or {}).copy()  # Copy to prevent external modification
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, error_code, message, request_id, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_context(self, **context) -> "PipelineError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        request_id_str = f", request_id='{self.request_id}'" if self.request_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{request_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        request_id: str | None = None,
        **details
    ) -> "PipelineError":
        """
        Create a pipeline error from another exception.

        Useful for wrapping third-party exceptions (httpx, botocore, google-api-core)
        with additional context.

        Example:
            >>> try:
            ...     await client.get(url)
            ... except httpx.TransportError as e:
            ...     raise MediaFetchError.from_exception(e, url=url) from e
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, request_id=request_id, details=error_details)


class ConfigurationError(PipelineError):
    """Raised when configuration is invalid or missing (API key, bucket)."""

    error_code = "CONFIGURATION_ERROR"
