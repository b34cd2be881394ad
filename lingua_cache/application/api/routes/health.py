"""
Health Check Routes
===================

    GET /health        liveness plus cache tier status (always 200 while the
                       process serves requests; "degraded" when L2 is down
                       or not configured)
    GET /health/stats  cache hit/miss counters

L2 outages degrade the service (every request computes) but do not make it
unavailable, so readiness does not fail on them.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from lingua_cache.application.api.dependencies import AIResultServiceDep, SettingsDep

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    cache: dict


@router.get("", response_model=HealthResponse)
async def health(service: AIResultServiceDep, settings: SettingsDep):
    cache_health = await service.health_check()
    return HealthResponse(
        status=cache_health["status"],
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=settings.app.APP_VERSION,
        cache=cache_health,
    )


@router.get("/stats")
async def stats(service: AIResultServiceDep):
    return service.stats()
