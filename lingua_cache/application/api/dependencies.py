"""
FastAPI Dependency Injection
============================

Reusable dependencies for the application singletons built in the lifespan
(see lingua_cache.application.app).

The AIResultService is created ONCE at startup and stored in app.state;
every request receives the same instance, so the L1 cache and the
single-flight map are shared process-wide.

Example:
    @router.post("/analyze-sentence")
    async def analyze_sentence(body: AnalyzeSentenceRequest, service: AIResultServiceDep):
        outcome = await service.analyze_sentence(body.sentence, body.context, body.language)
"""

from typing import Annotated

from fastapi import Depends, Request

from lingua_cache.core.config.settings import Settings, get_settings
from lingua_cache.services.ai_result_service import AIResultService

# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_ai_result_service(request: Request) -> AIResultService:
    """
    Retrieve the AIResultService singleton from application state.

    Raises:
        RuntimeError: If the lifespan did not run (service not initialized)
    """
    service = getattr(request.app.state, "ai_result_service", None)
    if service is None:
        raise RuntimeError("AIResultService is not initialized; was the app started with its lifespan?")
    return service


# ============================================================================
# TYPE ALIASES
# ============================================================================

AIResultServiceDep = Annotated[AIResultService, Depends(get_ai_result_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
