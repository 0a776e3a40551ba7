"""FastAPI dependency injection — services bound to the request's DB session."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tierguard.database import get_db
from tierguard.models.storage_object import StorageType
from tierguard.services import (
    get_cache_health_service,
    get_nas_health_service,
    get_status_cache,
    get_storage_backends,
)
from tierguard.services.cache_health_service import CacheHealthService
from tierguard.services.catalog import FileRepository, StorageObjectRepository
from tierguard.services.consistency_service import StorageConsistencyService
from tierguard.services.health_history_service import HealthHistoryService
from tierguard.services.nas_health_service import NasHealthService
from tierguard.services.nas_status_cache import NasStatusCache
from tierguard.services.observability_service import ObservabilityService
from tierguard.services.storage_backends import StorageBackend
from tierguard.services.system_config_service import SystemConfigService


def nas_health_service() -> NasHealthService:
    return get_nas_health_service()


def cache_health_service() -> CacheHealthService:
    return get_cache_health_service()


def status_cache() -> NasStatusCache:
    return get_status_cache()


def storage_backends() -> dict[StorageType, StorageBackend]:
    return get_storage_backends()


def consistency_service(
    db: AsyncSession = Depends(get_db),
    backends: dict[StorageType, StorageBackend] = Depends(storage_backends),
) -> StorageConsistencyService:
    objects = StorageObjectRepository(db)
    return StorageConsistencyService(
        files=FileRepository(db),
        catalogs={StorageType.CACHE: objects, StorageType.NAS: objects},
        backends=backends,
    )


def observability_service(
    db: AsyncSession = Depends(get_db),
    nas_health: NasHealthService = Depends(nas_health_service),
    cache: NasStatusCache = Depends(status_cache),
) -> ObservabilityService:
    return ObservabilityService(
        nas_health=nas_health,
        status_cache=cache,
        history=HealthHistoryService(db),
        config=SystemConfigService(db),
    )
