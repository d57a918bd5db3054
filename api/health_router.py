"""
Health and Monitoring Router.

Public, unauthenticated endpoints for health checks and monitoring of the CMS
API. They are mounted without the `/api` prefix so probes can reach them
directly.

Endpoints Provided:
- `/healthcheck`: A lightweight check that the process is serving requests.
- `/monitoring/ping`: A simple ping endpoint for connectivity testing.
- `/monitoring/detailed`: Component status, currently the database and the
  media host configuration. A failing component reports the service as
  "degraded" rather than failing the request.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from core.database import Database
from core.logging_config import get_logger
from providers.media_provider import MediaProvider
from .dependencies import get_database, get_media_provider

logger = get_logger(__name__)

SERVICE_NAME = "Institute CMS API"
SERVICE_VERSION = "1.0.0"

health_router = APIRouter(tags=["Health & Monitoring"])

monitoring_router = APIRouter(prefix="/monitoring", tags=["Health & Monitoring"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@health_router.get("/healthcheck")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint (no authentication required)

    Returns:
        Dict with status, timestamp, and version info
    """
    logger.debug("Health check requested")

    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "version": SERVICE_VERSION,
        "service": SERVICE_NAME,
    }


@monitoring_router.get("/ping")
async def ping() -> Dict[str, str]:
    """Simple ping endpoint for connectivity testing"""
    logger.debug("Ping requested")
    return {"message": "pong", "timestamp": _timestamp(), "version": SERVICE_VERSION}


@monitoring_router.get("/detailed")
async def detailed_health_check(
    database: Database = Depends(get_database),
    media: MediaProvider = Depends(get_media_provider),
) -> Dict[str, Any]:
    """Detailed health check with component status"""
    logger.info("Detailed health check requested")

    health_status = {
        "status": "healthy",
        "timestamp": _timestamp(),
        "version": SERVICE_VERSION,
        "service": SERVICE_NAME,
        "components": {},
    }

    db_info = await database.info()
    db_healthy = db_info["connection_healthy"]
    health_status["components"]["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "info": db_info,
    }
    if not db_healthy:
        health_status["status"] = "degraded"

    # An unconfigured media host only affects uploads
    configured = getattr(media, "is_configured", True)
    health_status["components"]["media"] = {
        "status": "healthy" if configured else "unavailable",
        "provider": media.source_name,
    }

    return health_status
