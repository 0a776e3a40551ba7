"""Admin storage routes — tier health checks and consistency scans."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from tierguard.api.deps import (
    cache_health_service,
    consistency_service,
    nas_health_service,
    status_cache,
)
from tierguard.models.storage_object import StorageType
from tierguard.schemas.consistency import ConsistencyCheckParams, ConsistencyResult
from tierguard.schemas.health import HealthResult, NasStatusSnapshot
from tierguard.services.cache_health_service import CacheHealthService
from tierguard.services.consistency_service import StorageConsistencyService
from tierguard.services.nas_health_service import NasHealthService
from tierguard.services.nas_status_cache import NasStatusCache

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/cache/health-check", response_model=HealthResult, response_model_exclude_none=True)
async def cache_health_check(service: CacheHealthService = Depends(cache_health_service)):
    """Write/read/delete round trip against the cache tier."""
    return await service.check_health()


@router.get("/nas/health-check", response_model=HealthResult, response_model_exclude_none=True)
async def nas_health_check(
    service: NasHealthService = Depends(nas_health_service),
    cache: NasStatusCache = Depends(status_cache),
):
    """NAS connectivity and capacity; also refreshes the cached NAS status."""
    result = await service.check_health()
    cache.update_from_health_check(result.status.value, result.error)
    return result


@router.get("/nas/status", response_model=NasStatusSnapshot)
async def nas_status(cache: NasStatusCache = Depends(status_cache)):
    """Last known NAS status without probing."""
    return cache.snapshot()


@router.get(
    "/storage/consistency",
    response_model=ConsistencyResult,
    response_model_exclude_none=True,
)
async def storage_consistency(
    storage_type: StorageType | None = Query(None, alias="storageType"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    sample: bool = Query(False),
    service: StorageConsistencyService = Depends(consistency_service),
):
    """Compare storage objects against file records and physical storage."""
    params = ConsistencyCheckParams(
        storage_type=storage_type, limit=limit, offset=offset, sample=sample
    )
    return await service.check_consistency(params)
