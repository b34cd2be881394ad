"""
Google Gemini Client

Single-shot (non-streaming) wrapper over the google-generativeai SDK.

Architectural Decision: Use google-generativeai SDK
- Native inline-media parts ({"mime_type": ..., "data": bytes})
- JSON response mode via generation_config
- Authentication via API key

Error mapping (SDK → pipeline):
    Unauthenticated / PermissionDenied → ModelAuthenticationError
    ResourceExhausted                  → ModelRateLimitError
    DeadlineExceeded / local timeout   → ModelTimeoutError
    ServiceUnavailable / other errors  → ModelInvocationError
    blocked or empty answer            → ModelInvocationError
"""

import asyncio
import time
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from lingua_cache.core.config.constants import GEMINI_TEXT_TIMEOUT, Stage
from lingua_cache.core.exceptions import (
    ConfigurationError,
    ModelAuthenticationError,
    ModelInvocationError,
    ModelRateLimitError,
    ModelTimeoutError,
)
from lingua_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

# A prompt part: plain text or an inline blob
ContentPart = str | dict[str, Any]


class GeminiClient:
    """
    Concrete Gemini endpoint client.

    STAGE-4: Model invocation
    """

    def __init__(self, api_key: str | None, model: str = "gemini-2.5-flash-lite"):
        """
        Args:
            api_key: Gemini API key
            model: Model name

        Raises:
            ConfigurationError: If no API key is given
        """
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

        # The SDK keeps the key in module state; one key per process
        genai.configure(api_key=api_key)
        self._model_name = model
        self._model = genai.GenerativeModel(
            model,
            generation_config={"response_mime_type": "application/json"},
        )

        log_stage(logger, Stage.INITIALIZATION, "Gemini client initialized", model=model)

    @classmethod
    def from_settings(cls, settings) -> "GeminiClient":
        gemini = settings.gemini
        return cls(api_key=gemini.GEMINI_API_KEY, model=gemini.GEMINI_MODEL)

    @property
    def model_name(self) -> str:
        return self._model_name

    async def generate(self, parts: list[ContentPart], timeout: float = GEMINI_TEXT_TIMEOUT) -> str:
        """
        Send one request and return the answer text.

        Args:
            parts: Prompt text and inline media parts
            timeout: Wall-clock limit in seconds

        Raises:
            ModelInvocationError (or a subclass)
        """
        start_time = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(parts, request_options={"timeout": timeout}),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, TimeoutError, google_exceptions.DeadlineExceeded) as e:
            log_stage(logger, Stage.MODEL_INVOKE, "Gemini call timed out", level="error", timeout=timeout)
            raise ModelTimeoutError(
                f"Gemini call timed out after {timeout}s",
                details={"model": self._model_name, "timeout": timeout},
            ) from e
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            log_stage(logger, Stage.MODEL_INVOKE, "Gemini authentication failed", level="error", error=str(e))
            raise ModelAuthenticationError(
                "Invalid Gemini API key", details={"model": self._model_name}
            ) from e
        except google_exceptions.ResourceExhausted as e:
            log_stage(logger, Stage.MODEL_INVOKE, "Gemini rate limit exceeded", level="warning", error=str(e))
            raise ModelRateLimitError(
                "Gemini rate limit exceeded", details={"model": self._model_name}
            ) from e
        except google_exceptions.ServiceUnavailable as e:
            log_stage(logger, Stage.MODEL_INVOKE, "Gemini service unavailable", level="error", error=str(e))
            raise ModelInvocationError(
                "Gemini service unavailable", details={"model": self._model_name}
            ) from e
        except google_exceptions.GoogleAPIError as e:
            log_stage(logger, Stage.MODEL_INVOKE, "Gemini API error", level="error", error=str(e))
            raise ModelInvocationError.from_exception(
                e, message=f"Gemini API error: {e}", model=self._model_name
            ) from e

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the answer was blocked or has no parts
            raise ModelInvocationError.from_exception(
                e, message="Gemini returned no usable answer", model=self._model_name
            ) from e

        if not text or not text.strip():
            raise ModelInvocationError("Gemini returned an empty answer", details={"model": self._model_name})

        log_stage(
            logger, Stage.MODEL_INVOKE, "Gemini call complete",
            model=self._model_name,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            response_chars=len(text),
        )
        return text
