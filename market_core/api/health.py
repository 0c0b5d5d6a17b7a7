"""
Health check endpoints for monitoring and connectivity verification.
Following Factor 9: Error Handling and observability.

Redis is optional at runtime (cache and rate limiting fail open), so a lost
Redis connection reports "degraded" but never makes the service unready.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from .. import __version__
from ..core.config import Settings, get_settings
from ..core.utils.date_utils import utcnow
from ..database.redis import RedisCache
from .dependencies.services import get_redis

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(
    redis_cache: RedisCache = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Comprehensive health check endpoint.

    Tests connectivity to:
    - Redis (cache + rate-limit counters)
    - Application configuration (provider keys)
    """
    logger.info("Health check requested")

    redis_status = await redis_cache.health_check()
    healthy = bool(redis_status.get("connected", False))

    health_response = {
        "status": "ok" if healthy else "degraded",
        "environment": settings.environment,
        "version": __version__,
        "timestamp": utcnow().isoformat(),
        "dependencies": {
            "redis": redis_status,
        },
        "configuration": {
            "fmp_configured": bool(settings.fmp_api_key),
            "benchmark_symbol": settings.benchmark_symbol,
        },
    }

    if healthy:
        logger.info("Health check passed", status="healthy")
    else:
        logger.warning(
            "Health check degraded",
            status="degraded",
            dependencies=health_response["dependencies"],
        )

    return health_response


@router.get("/health/redis")
async def redis_health(redis_cache: RedisCache = Depends(get_redis)) -> dict[str, Any]:
    """Specific Redis health check endpoint."""
    return await redis_cache.health_check()


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """Kubernetes readiness probe endpoint. Always ready once started."""
    return {"ready": True}
