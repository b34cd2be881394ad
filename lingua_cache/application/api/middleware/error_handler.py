"""
Error Handling Middleware
=========================

Last line of defence for exceptions that no FastAPI exception handler
claimed. Domain errors (PipelineError subclasses) are mapped to status codes
by the handlers registered in create_app; this middleware only sees the
unexpected ones.

Security: internal details (tracebacks, exception messages) are returned
only when include_traceback is set, which create_app does in development.
"""

import traceback
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from lingua_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch-all that turns unhandled exceptions into the error envelope."""

    def __init__(self, app, include_traceback: bool = False):
        """
        Args:
            app: The ASGI application
            include_traceback: Whether to include stack traces in error responses
        """
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                f"Unhandled exception in request: {request.method} {request.url.path}",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )

            error_response = {
                "success": False,
                "error": "An unexpected error occurred while processing your request",
                "code": "INTERNAL_ERROR",
            }
            if self.include_traceback:
                error_response["detail"] = str(e)
                error_response["traceback"] = traceback.format_exc()

            return JSONResponse(status_code=500, content=error_response)
