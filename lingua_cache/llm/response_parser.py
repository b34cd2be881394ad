"""
Model Response Parser

Turns the raw text of a model answer into a validated result model.

Steps:
1. Strip Markdown code fences (```json ... ```), which the model adds
   despite being told not to
2. Decode with orjson
3. Validate into the pydantic model for the request kind

Anything that fails raises ModelResponseMalformed. A result is accepted
whole or not at all; nothing is cached from a failed parse.
"""

import re
from typing import Any

import orjson
from pydantic import ValidationError as PydanticValidationError

from lingua_cache.core.config.constants import Stage
from lingua_cache.core.exceptions import ModelResponseMalformed
from lingua_cache.core.logging.logger import get_logger, log_stage
from lingua_cache.models.results import ResultKind, StructuredResult

logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)

# How much of a bad answer to keep in error details and logs
_RAW_PREVIEW_CHARS = 500


def strip_code_fences(raw_text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    text = raw_text.strip()
    match = _FENCE_PATTERN.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_result(kind: ResultKind, raw_text: str, **extra_fields: Any) -> StructuredResult:
    """
    Parse and validate a model answer.

    Args:
        kind: Which result model to validate against
        raw_text: The model's text output
        **extra_fields: Fields the caller knows and the model does not
            (e.g. ``language`` for transcripts); they override model output

    Raises:
        ModelResponseMalformed: Not JSON, or JSON of the wrong shape
    """
    cleaned = strip_code_fences(raw_text or "")
    preview = cleaned[:_RAW_PREVIEW_CHARS]

    try:
        data = orjson.loads(cleaned)
    except orjson.JSONDecodeError as e:
        log_stage(
            logger, Stage.RESPONSE_VALIDATION, "Model answer is not JSON",
            level="warning", kind=kind.value, raw_preview=preview,
        )
        raise ModelResponseMalformed(
            "Failed to parse AI response as JSON",
            details={"kind": kind.value, "error": str(e), "raw_preview": preview},
        ) from e

    # Transcripts sometimes come back as a bare segment list
    if kind is ResultKind.TRANSCRIPT and isinstance(data, list):
        data = {"segments": data}

    if not isinstance(data, dict):
        raise ModelResponseMalformed(
            f"AI response must be a JSON object, got {type(data).__name__}",
            details={"kind": kind.value, "raw_preview": preview},
        )

    data.update(extra_fields)

    try:
        result = kind.model.model_validate(data)
    except PydanticValidationError as e:
        log_stage(
            logger, Stage.RESPONSE_VALIDATION, "Model answer failed validation",
            level="warning", kind=kind.value, errors=e.error_count(),
        )
        raise ModelResponseMalformed(
            "AI response does not match the expected structure",
            details={
                "kind": kind.value,
                "errors": e.errors(include_url=False, include_context=False, include_input=False),
                "raw_preview": preview,
            },
        ) from e

    log_stage(logger, Stage.RESPONSE_VALIDATION, "Model answer validated", level="debug", kind=kind.value)
    return result
