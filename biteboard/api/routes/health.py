"""Health check endpoints for the BiteBoard API.

Provides the status of the analysis cache and the configured providers.
"""

from datetime import datetime, timezone
import time
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException

from biteboard import __version__
from biteboard.api.dependencies import get_cache
from biteboard.api.models import HealthCheckResponse, HealthStatus
from biteboard.cache.analysis_cache import AnalysisCache
from biteboard.config.settings import Settings, get_settings
from biteboard.core.circuit_breaker import get_all_circuit_breakers

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])

_HEALTH_PROBE_KEY = "__health_probe__"

# Track server start time for uptime calculation
_server_start_time: Optional[float] = None


def set_server_start_time() -> None:
    """Set the server start time. Called on application startup."""
    global _server_start_time
    _server_start_time = time.time()


def get_uptime_seconds() -> Optional[float]:
    """Get server uptime in seconds."""
    if _server_start_time is None:
        return None
    return time.time() - _server_start_time


async def check_cache_health(cache: AnalysisCache) -> HealthStatus:
    """Check that the analysis cache answers a lookup."""
    start_time = time.time()
    try:
        await cache.get(_HEALTH_PROBE_KEY)
        latency = (time.time() - start_time) * 1000

        if cache.backend == "memory":
            return HealthStatus(
                status="degraded",
                latency_ms=round(latency, 2),
                message="Using in-memory cache; analyses are not persisted",
            )
        return HealthStatus(
            status="healthy",
            latency_ms=round(latency, 2),
            message=f"Connected to {cache.backend}",
        )
    except Exception as e:
        latency = (time.time() - start_time) * 1000
        logger.error("cache_health_check_failed", error=str(e))
        return HealthStatus(
            status="unhealthy",
            latency_ms=round(latency, 2),
            message=f"Cache lookup failed: {str(e)[:100]}",
        )


def check_key_configured(configured: bool, name: str) -> HealthStatus:
    """Report whether a provider key is present."""
    if configured:
        return HealthStatus(status="healthy", message=f"{name} configured")
    return HealthStatus(status="degraded", message=f"{name} not configured")


def check_places_provider(configured: bool) -> HealthStatus:
    """Report the Places key and whether its circuit breaker is refusing calls."""
    if not configured:
        return check_key_configured(False, "Google Places API key")
    breaker = get_all_circuit_breakers().get("google_places")
    if breaker is not None and breaker.is_open:
        snapshot = breaker.snapshot()
        return HealthStatus(
            status="degraded",
            message=(
                f"Circuit open after {snapshot['consecutive_failures']} failures, "
                f"retrying in {snapshot['seconds_until_recovery']}s"
            ),
        )
    return check_key_configured(True, "Google Places API key")


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health Check",
    description="Check the health status of the API and its dependencies.",
)
async def health_check(
    settings: Settings = Depends(get_settings),
    cache: AnalysisCache = Depends(get_cache),
) -> HealthCheckResponse:
    """
    Perform a health check of all system components.

    Returns the status of:
    - Analysis cache (Supabase or in-memory)
    - Google Places (API key and circuit breaker)
    - Anthropic (API key)
    """
    services = {
        "cache": await check_cache_health(cache),
        "google_places": check_places_provider(settings.google_places_api_key is not None),
        "anthropic": check_key_configured(
            settings.anthropic_api_key is not None, "Anthropic API key"
        ),
    }

    statuses = [s.status for s in services.values()]
    if all(s == "healthy" for s in statuses):
        overall_status = "healthy"
    elif any(s == "unhealthy" for s in statuses):
        overall_status = "unhealthy"
    else:
        overall_status = "degraded"

    return HealthCheckResponse(
        status=overall_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        services=services,
        uptime_seconds=get_uptime_seconds(),
    )


@router.get(
    "/health/live",
    summary="Liveness Check",
    description="Simple liveness check for container orchestration.",
)
async def liveness() -> dict:
    """Returns 200 if the service is alive."""
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Check if the service is ready to accept traffic.",
)
async def readiness(cache: AnalysisCache = Depends(get_cache)) -> dict:
    """
    Readiness probe.

    Returns 200 only if the analysis cache can be read.
    """
    cache_status = await check_cache_health(cache)

    if cache_status.status == "unhealthy":
        raise HTTPException(
            status_code=503,
            detail="Service not ready: analysis cache unavailable",
        )

    return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
