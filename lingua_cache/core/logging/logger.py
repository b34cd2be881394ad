"""
Structured Logging Module using structlog

This module provides structured logging with:
- Request ID correlation across the cache-aside flow
- Stage numbering for execution flow (see core.config.constants.Stage)
- JSON formatting for log aggregation
- Automatic credential redaction
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from lingua_cache.core.config.settings import get_settings

# Context variable for request ID
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def add_request_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add request ID to log event from context variable.

    STAGE-L.1: Request ID injection
    """
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """STAGE-L.2: Timestamp injection."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


_SECRET_PATTERNS = (
    re.compile(r"\bAIza[a-zA-Z0-9_-]+\b"),  # Google API keys
    re.compile(r"\bsk-[a-zA-Z0-9]+\b"),
    re.compile(r"(X-Amz-Signature=)[0-9a-f]+"),  # Presigned URL signatures
)


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact credentials from the log message and string fields.

    STAGE-L.3: Credential redaction

    Media URLs are logged for every download; presigned URLs carry signatures
    that must not end up in log storage.
    """
    for field, value in list(event_dict.items()):
        if isinstance(value, str):
            for pattern in _SECRET_PATTERNS:
                if pattern.groups:
                    value = pattern.sub(r"\1[REDACTED]", value)
                else:
                    value = pattern.sub("[REDACTED]", value)
            event_dict[field] = value
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """STAGE-L.4: Log level injection."""
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    STAGE-L: Logging initialization

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", stage=Stage.L1_LOOKUP)
    """
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    """
    Set request ID in context for the current request.

    This should be called at the start of each request to enable
    correlation across all log entries.
    """
    request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    """Get current request ID from context."""
    return request_id_ctx.get()


def clear_request_id() -> None:
    """Clear request ID from context (STAGE-6 cleanup)."""
    request_id_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log a message with stage information.

    Args:
        logger: Logger instance
        stage: Stage identifier (a Stage member or raw string)
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_stage(logger, Stage.L1_LOOKUP, "L1 cache hit", cache_key="abc123")
    """
    log_func = getattr(logger, level.lower())
    stage_value = stage.value if hasattr(stage, "value") else stage
    log_func(message, stage=stage_value, **kwargs)
