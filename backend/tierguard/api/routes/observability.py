"""NAS observability dashboard routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from tierguard.api.deps import observability_service
from tierguard.schemas.observability import (
    HealthHistoryResponse,
    ObservabilityCurrent,
    ObservabilitySettings,
    ObservabilitySettingsUpdate,
)
from tierguard.services.observability_service import ObservabilityService

router = APIRouter()


@router.get("/current", response_model=ObservabilityCurrent, response_model_exclude_none=True)
async def current(service: ObservabilityService = Depends(observability_service)):
    return await service.get_current()


@router.get("/history", response_model=HealthHistoryResponse)
async def history(
    hours: int = Query(24, ge=1, le=168),
    service: ObservabilityService = Depends(observability_service),
):
    return await service.get_history(hours)


@router.get("/settings", response_model=ObservabilitySettings)
async def get_settings(service: ObservabilityService = Depends(observability_service)):
    return await service.get_settings()


@router.put("/settings", response_model=ObservabilitySettings)
async def update_settings(
    update: ObservabilitySettingsUpdate,
    service: ObservabilityService = Depends(observability_service),
):
    return await service.update_settings(update, updated_by="admin")
