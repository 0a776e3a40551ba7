"""NAS observability — live status, history statistics and dashboard settings."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from tierguard.schemas.health import CapacityReport, HealthResult, HealthStatus
from tierguard.schemas.observability import (
    HealthHistoryItem,
    HealthHistoryResponse,
    ObservabilityCurrent,
    ObservabilitySettings,
    ObservabilitySettingsUpdate,
)
from tierguard.services.health_history_service import HealthHistoryService
from tierguard.services.nas_health_service import NasHealthService
from tierguard.services.nas_path import normalize_share_path
from tierguard.services.nas_status_cache import NasStatusCache
from tierguard.services.system_config_service import SystemConfigService

logger = logging.getLogger(__name__)

INTERVAL_MINUTES_KEY = "nas.health_check.interval_minutes"
RETENTION_DAYS_KEY = "nas.health_check.retention_days"
THRESHOLD_PERCENT_KEY = "nas.health_check.threshold_percent"

DEFAULT_INTERVAL_MINUTES = 5
DEFAULT_RETENTION_DAYS = 7
DEFAULT_THRESHOLD_PERCENT = 80


class ObservabilityService:
    def __init__(
        self,
        nas_health: NasHealthService,
        status_cache: NasStatusCache,
        history: HealthHistoryService,
        config: SystemConfigService,
    ):
        self._nas_health = nas_health
        self._status_cache = status_cache
        self._history = history
        self._config = config

    async def get_current(self) -> ObservabilityCurrent:
        """Run a probe now; ad-hoc checks refresh the status cache too."""
        result = await self._nas_health.check_health()
        self._status_cache.update_from_health_check(result.status.value, result.error)

        current = ObservabilityCurrent(
            status=result.status,
            response_time_ms=result.response_time_ms,
            checked_at=result.checked_at,
            error=result.error,
        )
        capacity = result.capacity
        if capacity:
            current.total_bytes = capacity.total_bytes
            current.used_bytes = capacity.used_bytes
            current.free_bytes = capacity.free_bytes
            current.usage_percent = (
                round(capacity.used_bytes / capacity.total_bytes * 100, 2)
                if capacity.total_bytes > 0 else 0.0
            )
            current.server_name = extract_server_name(capacity)
        return current

    async def get_history(self, hours: int) -> HealthHistoryResponse:
        rows = await self._history.recent(hours)

        total = len(rows)
        # degraded still serves requests, so it counts as up time
        up = sum(
            1 for r in rows
            if r.status in (HealthStatus.HEALTHY.value, HealthStatus.DEGRADED.value)
        )
        healthy_percent = round(up / total * 100, 2) if total else 100.0
        healthy_hours = round(healthy_percent / 100 * hours, 2)

        return HealthHistoryResponse(
            items=[
                HealthHistoryItem(
                    status=HealthStatus(r.status),
                    response_time_ms=r.response_time_ms,
                    total_bytes=r.total_bytes,
                    used_bytes=r.used_bytes,
                    checked_at=_as_utc(r.checked_at),
                )
                for r in rows
            ],
            hours=hours,
            total_count=total,
            healthy_percent=healthy_percent,
            healthy_hours=healthy_hours,
            unhealthy_hours=round(hours - healthy_hours, 2),
        )

    async def get_settings(self) -> ObservabilitySettings:
        return ObservabilitySettings(
            interval_minutes=await self._config.get_number(
                INTERVAL_MINUTES_KEY, DEFAULT_INTERVAL_MINUTES
            ),
            retention_days=await self._config.get_number(
                RETENTION_DAYS_KEY, DEFAULT_RETENTION_DAYS
            ),
            threshold_percent=await self._config.get_number(
                THRESHOLD_PERCENT_KEY, DEFAULT_THRESHOLD_PERCENT
            ),
        )

    async def update_settings(
        self, update: ObservabilitySettingsUpdate, updated_by: str | None = None
    ) -> ObservabilitySettings:
        if update.interval_minutes is not None:
            await self._config.set_value(
                INTERVAL_MINUTES_KEY, str(update.interval_minutes), updated_by,
                "Health check interval (minutes)",
            )
        if update.retention_days is not None:
            await self._config.set_value(
                RETENTION_DAYS_KEY, str(update.retention_days), updated_by,
                "Health history retention (days)",
            )
        if update.threshold_percent is not None:
            await self._config.set_value(
                THRESHOLD_PERCENT_KEY, str(update.threshold_percent), updated_by,
                "Storage usage threshold (%)",
            )
        return await self.get_settings()

    async def record_health_check(self) -> HealthResult | None:
        """Probe, publish to the status cache and persist to history."""
        try:
            result = await self._nas_health.check_health()
            self._status_cache.update_from_health_check(result.status.value, result.error)
            await self._history.record(result)
            logger.debug("NAS health recorded: %s", result.status.value)
            return result
        except Exception as e:
            self._status_cache.mark_unhealthy(str(e) or "Health check failed")
            logger.error("Recording NAS health check failed: %s", e)
            return None

    async def cleanup_old_history(self) -> int:
        retention_days = await self._config.get_number(RETENTION_DAYS_KEY, DEFAULT_RETENTION_DAYS)
        return await self._history.cleanup(retention_days)


def extract_server_name(capacity: CapacityReport) -> str | None:
    """Best-effort NAS host name from a capacity report.

    Windows providers are UNC paths; on POSIX the df filesystem column is
    ``host:/export`` for NFS or ``//host/share`` for CIFS. Local mounts
    have no server name.
    """
    drive = capacity.drive or ""
    if ":/" in drive and not drive.startswith("/"):
        return drive.split(":/", 1)[0] or None

    for candidate in (drive, capacity.provider or ""):
        if candidate.startswith(("//", "\\\\")):
            parts = [p for p in normalize_share_path(candidate).split("/") if p]
            return parts[0] if parts else None
    return None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
