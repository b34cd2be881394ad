"""
Validation Exceptions

Raised for malformed caller input. Fatal, returned immediately, never cached.
"""

from lingua_cache.core.exceptions.base import PipelineError


class ValidationError(PipelineError):
    """
    Raised when request input is malformed.

    Common causes:
    - Empty question/sentence
    - Fewer than two answer options
    - Correct answer index out of range
    - Unsupported language tag
    - Non-http(s) media URL or unsafe episode identifier
    """

    error_code = "VALIDATION_ERROR"
