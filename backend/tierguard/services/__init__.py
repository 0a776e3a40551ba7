"""Storage health services — singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tierguard.config import settings
from tierguard.models.storage_object import StorageType

if TYPE_CHECKING:
    from tierguard.services.cache_health_service import CacheHealthService
    from tierguard.services.nas_health_service import NasHealthService
    from tierguard.services.nas_status_cache import NasStatusCache
    from tierguard.services.scheduler import HealthCheckScheduler
    from tierguard.services.storage_backends import StorageBackend

logger = logging.getLogger(__name__)

_nas_health_service: NasHealthService | None = None
_cache_health_service: CacheHealthService | None = None
_status_cache: NasStatusCache | None = None
_storage_backends: dict[StorageType, StorageBackend] | None = None
_scheduler: HealthCheckScheduler | None = None


def init_services() -> None:
    """Create and wire up all service singletons."""
    global _nas_health_service, _cache_health_service, _status_cache
    global _storage_backends, _scheduler

    from tierguard.services.cache_health_service import CacheHealthService
    from tierguard.services.command_runner import CommandRunner
    from tierguard.services.nas_health_service import NasHealthService
    from tierguard.services.nas_status_cache import NasStatusCache
    from tierguard.services.scheduler import HealthCheckScheduler
    from tierguard.services.storage_backends import LocalStorageBackend

    cache_backend = LocalStorageBackend(settings.cache_dir)
    nas_backend = LocalStorageBackend(settings.nas_mount_path or settings.nas_storage_dir)
    _storage_backends = {StorageType.CACHE: cache_backend, StorageType.NAS: nas_backend}

    _nas_health_service = NasHealthService(runner=CommandRunner())
    _cache_health_service = CacheHealthService(cache_backend)
    _status_cache = NasStatusCache()

    if settings.health_check_scheduler_enabled:
        _scheduler = HealthCheckScheduler(_nas_health_service, _status_cache)
        _scheduler.start()
    else:
        logger.warning(
            "Health check scheduler disabled (TIERGUARD_HEALTH_CHECK_SCHEDULER_ENABLED)"
        )

    logger.info(
        "Storage services initialized (cache=%s, nas=%s)",
        cache_backend.root, nas_backend.root,
    )


async def shutdown_services() -> None:
    """Stop the scheduler."""
    global _scheduler
    if _scheduler:
        await _scheduler.stop()
        _scheduler = None


def get_nas_health_service() -> NasHealthService:
    if _nas_health_service is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _nas_health_service


def get_cache_health_service() -> CacheHealthService:
    if _cache_health_service is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _cache_health_service


def get_status_cache() -> NasStatusCache:
    if _status_cache is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _status_cache


def get_storage_backends() -> dict[StorageType, StorageBackend]:
    if _storage_backends is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _storage_backends
