"""
Model Invocation Exceptions

All exceptions related to the remote generative-AI endpoint.
"""

from lingua_cache.core.exceptions.base import PipelineError


class ModelInvocationError(PipelineError):
    """Base exception for remote model call failures."""

    error_code = "MODEL_INVOCATION_FAILED"


class ModelAuthenticationError(ModelInvocationError):
    """Raised when the model endpoint rejects the API credential."""

    error_code = "MODEL_AUTHENTICATION_FAILED"


class ModelRateLimitError(ModelInvocationError):
    """Raised when the model endpoint reports quota exhaustion."""

    error_code = "MODEL_RATE_LIMITED"


class ModelTimeoutError(ModelInvocationError):
    """Raised when the model call exceeds its timeout."""

    error_code = "MODEL_TIMEOUT"


class ModelResponseMalformed(PipelineError):
    """
    Raised when the model's answer is not valid JSON of the expected shape.

    Output that fails validation is never cached, not even partially.
    """

    error_code = "MODEL_RESPONSE_MALFORMED"
