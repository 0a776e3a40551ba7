"""Service liveness — says nothing about the storage tiers."""

from fastapi import APIRouter

from tierguard import __version__
from tierguard.schemas.health import ServiceHealth

router = APIRouter()


@router.get("/health", response_model=ServiceHealth)
async def health_check():
    """Lightweight liveness check for load balancers and the dashboard."""
    return ServiceHealth(version=__version__)


@router.get("/ping")
async def ping():
    """Ultra-lightweight ping."""
    return {"status": "ok"}
