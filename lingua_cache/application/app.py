"""
FastAPI Application Entry Point

Configures the HTTP surface of the AI result cache: lifespan-managed
singletons, middleware, routers and exception handlers.

Run:
    uvicorn lingua_cache.application.app:app
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lingua_cache.application.api.middleware.error_handler import ErrorHandlingMiddleware
from lingua_cache.application.api.routes.ai import router as ai_router
from lingua_cache.application.api.routes.health import router as health_router
from lingua_cache.core.config.constants import HEADER_REQUEST_ID, Stage
from lingua_cache.core.config.settings import Settings, get_settings
from lingua_cache.core.exceptions import (
    ConfigurationError,
    MediaFetchError,
    ModelInvocationError,
    ModelResponseMalformed,
    PayloadTooLargeError,
    PipelineError,
    TranscodeError,
    ValidationError,
)
from lingua_cache.core.logging.logger import (
    clear_request_id,
    get_logger,
    log_stage,
    set_request_id,
    setup_logging,
)
from lingua_cache.infrastructure.cache.cache_manager import TwoTierCache
from lingua_cache.infrastructure.cache.memory_cache import MemoryCache
from lingua_cache.infrastructure.cache.object_cache import ObjectCacheClient
from lingua_cache.infrastructure.media.downloader import MediaDownloader
from lingua_cache.infrastructure.media.transcoder import AudioTranscoder
from lingua_cache.llm.gemini_client import GeminiClient
from lingua_cache.llm.invoker import MultimodalInvoker
from lingua_cache.services.ai_result_service import AIResultService

logger = get_logger(__name__)


# ============================================================================
# Error → HTTP status mapping
# ============================================================================

# Most specific class first; the first isinstance match wins
_STATUS_BY_ERROR: tuple[tuple[type[PipelineError], int], ...] = (
    (ValidationError, 400),
    (PayloadTooLargeError, 413),
    (MediaFetchError, 400),
    (TranscodeError, 500),
    (ModelResponseMalformed, 502),
    (ModelInvocationError, 502),
    (ConfigurationError, 500),
)


def status_for(exc: PipelineError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def error_body(message: str, code: str) -> dict:
    return {"success": False, "error": message, "code": code}


# ============================================================================
# Service construction
# ============================================================================


def build_ai_result_service(settings: Settings) -> AIResultService:
    """
    Wire the full object graph from settings.

    Without object-store configuration the cache runs L1-only outside
    production; in production a missing bucket is a startup error.

    Raises:
        ConfigurationError: Missing API key (always) or bucket (production)
    """
    try:
        l2 = ObjectCacheClient.from_settings(settings)
    except ConfigurationError as e:
        if settings.app.ENVIRONMENT == "production":
            raise
        log_stage(
            logger, Stage.INITIALIZATION, "Object store not configured, running L1-only",
            level="warning", reason=e.message,
        )
        l2 = None

    cache = TwoTierCache(
        MemoryCache(max_size=settings.cache.CACHE_L1_MAX_SIZE, ttl_seconds=settings.cache.CACHE_L1_TTL),
        l2,
    )
    downloader = MediaDownloader.from_settings(settings)
    invoker = MultimodalInvoker.from_settings(settings, GeminiClient.from_settings(settings), downloader)

    return AIResultService(
        cache=cache,
        invoker=invoker,
        downloader=downloader,
        transcoder=AudioTranscoder.from_settings(settings),
        settings=settings,
    )


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).

    A service placed on app.state before startup (tests) is kept as is.
    """
    settings = get_settings()
    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting AI result cache",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    if getattr(app.state, "ai_result_service", None) is None:
        app.state.ai_result_service = build_ai_result_service(settings)
    log_stage(logger, Stage.INITIALIZATION, "Application startup complete")

    try:
        yield
    finally:
        stats = app.state.ai_result_service.stats()
        logger.info("Shutting down application", cache_stats=stats)


# ============================================================================
# Application Factory
# ============================================================================


def create_app(service: AIResultService | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Pre-built service (tests); built in the lifespan otherwise
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Cache-aside AI analysis and transcript service",
        lifespan=lifespan,
    )
    app.state.ai_result_service = service

    # Registered first so it runs innermost; request-id middleware wraps it
    app.add_middleware(
        ErrorHandlingMiddleware,
        include_traceback=(settings.app.ENVIRONMENT == "development"),
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Bind a request id to the log context and echo it in the response."""
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)
        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError):
        status_code = status_for(exc)
        level = "error" if status_code >= 500 else "warning"
        getattr(logger, level)(
            f"Request failed: {exc.message}",
            path=request.url.path,
            status_code=status_code,
            **exc.to_dict(),
        )
        return JSONResponse(status_code=status_code, content=error_body(exc.message, exc.error_code))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid request')}" if location else "invalid request body"
        return JSONResponse(status_code=400, content=error_body(message, ValidationError.error_code))

    base_path = settings.app.API_BASE_PATH
    app.include_router(ai_router, prefix=base_path)
    app.include_router(health_router)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# Module-level instance for uvicorn
app = create_app()
