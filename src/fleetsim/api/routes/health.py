"""Health endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, status

from ...config import settings
from ...services.routing.graphhopper_client import check_health as graphhopper_health_check

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/graphhopper", status_code=status.HTTP_200_OK)
def health_graphhopper() -> dict:
    """Check routing provider health."""
    healthy = graphhopper_health_check()
    return {
        "service": "graphhopper",
        "url": settings.graphhopper_base_url,
        "healthy": healthy,
        "status": "connected" if healthy else "unavailable",
    }
