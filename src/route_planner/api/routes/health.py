"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings
from ...services.routing.dispatch_client import check_health

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    return {"status": "ok"}


@router.get("/health/dispatch", status_code=status.HTTP_200_OK)
def health_dispatch() -> dict:
    """Dispatch backend reachability; routes degrade to empty input while it is down."""
    if not settings.dispatch_base_url:
        return {"service": "dispatch", "configured": False, "healthy": False}
    return {"service": "dispatch", "configured": True, "healthy": check_health()}
