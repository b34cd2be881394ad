"""
Exception Module

Structured exception hierarchy for the AI result pipeline.

Module Structure:
-----------------
- **base.py**: PipelineError base class + ConfigurationError
- **validation.py**: Caller input errors
- **media.py**: Download and transcoding errors
- **model.py**: Remote model call and response-shape errors
- **cache.py**: Cache backend errors (always non-fatal)

Usage:
------
```python
from lingua_cache.core.exceptions import MediaFetchError, ModelResponseMalformed
```
"""

from lingua_cache.core.exceptions.base import ConfigurationError, PipelineError
from lingua_cache.core.exceptions.cache import CacheBackendError, CacheKeyNotFoundError
from lingua_cache.core.exceptions.media import MediaFetchError, PayloadTooLargeError, TranscodeError
from lingua_cache.core.exceptions.model import (
    ModelAuthenticationError,
    ModelInvocationError,
    ModelRateLimitError,
    ModelResponseMalformed,
    ModelTimeoutError,
)
from lingua_cache.core.exceptions.validation import ValidationError

__all__ = [
    "CacheBackendError",
    "CacheKeyNotFoundError",
    "ConfigurationError",
    "MediaFetchError",
    "ModelAuthenticationError",
    "ModelInvocationError",
    "ModelRateLimitError",
    "ModelResponseMalformed",
    "ModelTimeoutError",
    "PayloadTooLargeError",
    "PipelineError",
    "TranscodeError",
    "ValidationError",
]
