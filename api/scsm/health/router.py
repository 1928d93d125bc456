"""Health check endpoints."""

from fastapi import APIRouter, Request

from scsm.config import get_settings
from scsm.core.database import AsyncCassandraConnection


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - reports the backing services."""
    settings = get_settings()
    return {
        "status": "ready",
        "environment": settings.environment,
        "database": AsyncCassandraConnection.is_connected(),
        "redis": getattr(request.app.state, "redis", None) is not None,
        "payment_gateway": settings.cashfree_configured,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
