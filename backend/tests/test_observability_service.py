"""Tests for NAS observability — live status, history and settings."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from tierguard.models import SystemConfig
from tierguard.schemas.health import CapacityReport, HealthResult, HealthStatus
from tierguard.schemas.observability import ObservabilitySettingsUpdate
from tierguard.services.health_history_service import HealthHistoryService
from tierguard.services.nas_status_cache import NasStatusCache
from tierguard.services.observability_service import (
    RETENTION_DAYS_KEY,
    ObservabilityService,
    extract_server_name,
)
from tierguard.services.system_config_service import SystemConfigService


def _result(status=HealthStatus.HEALTHY, capacity=None, error=None, checked_at=None):
    return HealthResult(
        status=status,
        response_time_ms=42,
        checked_at=checked_at or datetime.now(timezone.utc),
        capacity=capacity,
        error=error,
    )


@pytest.fixture
def nas_health():
    probe = AsyncMock()
    probe.check_health.return_value = _result(
        capacity=CapacityReport(
            total_bytes=1000, used_bytes=333, free_bytes=667,
            drive="Z:", provider="\\\\192.168.10.249\\Web",
        )
    )
    return probe


@pytest.fixture
def status_cache():
    return NasStatusCache()


@pytest.fixture
def service(db_session, nas_health, status_cache):
    return ObservabilityService(
        nas_health=nas_health,
        status_cache=status_cache,
        history=HealthHistoryService(db_session),
        config=SystemConfigService(db_session),
    )


class TestCurrent:
    @pytest.mark.asyncio
    async def test_flattens_capacity(self, service):
        current = await service.get_current()

        assert current.status == HealthStatus.HEALTHY
        assert current.total_bytes == 1000
        assert current.usage_percent == 33.3
        assert current.server_name == "192.168.10.249"

    @pytest.mark.asyncio
    async def test_failed_probe_updates_status_cache(self, service, nas_health, status_cache):
        nas_health.check_health.return_value = _result(
            status=HealthStatus.UNHEALTHY, error="Timeout after 10s"
        )

        current = await service.get_current()

        assert current.total_bytes is None
        assert current.error == "Timeout after 10s"
        assert not status_cache.is_available()


class TestRecording:
    @pytest.mark.asyncio
    async def test_record_persists_and_publishes(self, service, db_session, status_cache, nas_health):
        nas_health.check_health.return_value = _result(status=HealthStatus.DEGRADED)

        result = await service.record_health_check()

        assert result.status == HealthStatus.DEGRADED
        assert status_cache.status == HealthStatus.DEGRADED
        (row,) = await HealthHistoryService(db_session).recent(1)
        assert row.status == "degraded"
        assert row.total_bytes == 0

    @pytest.mark.asyncio
    async def test_probe_crash_marks_unhealthy(self, service, nas_health, status_cache):
        nas_health.check_health.side_effect = RuntimeError("event loop closed")

        assert await service.record_health_check() is None
        assert status_cache.snapshot().last_error == "event loop closed"


class TestHistory:
    @pytest.mark.asyncio
    async def test_empty_history_is_fully_healthy(self, service):
        history = await service.get_history(24)

        assert history.total_count == 0
        assert history.healthy_percent == 100.0
        assert history.unhealthy_hours == 0.0

    @pytest.mark.asyncio
    async def test_degraded_counts_as_up(self, service, db_session):
        history_service = HealthHistoryService(db_session)
        now = datetime.now(timezone.utc)
        statuses = [HealthStatus.HEALTHY, HealthStatus.DEGRADED, HealthStatus.HEALTHY, HealthStatus.UNHEALTHY]
        for n, status in enumerate(statuses):
            await history_service.record(_result(status=status, checked_at=now - timedelta(minutes=10 * (4 - n))))

        history = await service.get_history(24)

        assert history.total_count == 4
        assert history.healthy_percent == 75.0
        assert history.healthy_hours == 18.0
        assert history.unhealthy_hours == 6.0
        assert [i.status for i in history.items] == statuses
        assert history.items[0].checked_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_window_excludes_old_rows(self, service, db_session):
        history_service = HealthHistoryService(db_session)
        now = datetime.now(timezone.utc)
        await history_service.record(_result(checked_at=now - timedelta(hours=30)))
        await history_service.record(_result(checked_at=now - timedelta(hours=1)))

        assert (await service.get_history(24)).total_count == 1

    @pytest.mark.asyncio
    async def test_cleanup_uses_configured_retention(self, service, db_session):
        history_service = HealthHistoryService(db_session)
        now = datetime.now(timezone.utc)
        await history_service.record(_result(checked_at=now - timedelta(days=3)))
        await history_service.record(_result(checked_at=now - timedelta(hours=1)))
        await SystemConfigService(db_session).set_value(RETENTION_DAYS_KEY, "2")

        assert await service.cleanup_old_history() == 1
        assert len(await history_service.recent(24 * 30)) == 1


class TestSettings:
    @pytest.mark.asyncio
    async def test_defaults(self, service):
        current = await service.get_settings()
        assert (current.interval_minutes, current.retention_days, current.threshold_percent) == (5, 7, 80)

    @pytest.mark.asyncio
    async def test_partial_update(self, service, db_session):
        updated = await service.update_settings(
            ObservabilitySettingsUpdate(interval_minutes=15), updated_by="admin"
        )

        assert updated.interval_minutes == 15
        assert updated.retention_days == 7
        row = await db_session.get(SystemConfig, "nas.health_check.interval_minutes")
        assert row.value == "15"
        assert row.updated_by == "admin"

    @pytest.mark.asyncio
    async def test_non_numeric_value_falls_back(self, service, db_session):
        await SystemConfigService(db_session).set_value(RETENTION_DAYS_KEY, "a week")
        assert (await service.get_settings()).retention_days == 7


@pytest.mark.parametrize(
    "drive, provider, expected",
    [
        ("Z:", "\\\\192.168.10.249\\Web", "192.168.10.249"),
        ("nas01:/export/files", "/mnt/nas", "nas01"),
        ("//nas02/share", "/mnt/nas", "nas02"),
        ("/dev/sdb1", "/mnt/usb", None),
        (None, None, None),
    ],
)
def test_extract_server_name(drive, provider, expected):
    capacity = CapacityReport(total_bytes=1, used_bytes=0, free_bytes=1, drive=drive, provider=provider)
    assert extract_server_name(capacity) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("stored", ["inf", "-inf", "nan"])
async def test_non_finite_value_falls_back(db_session, stored):
    config = SystemConfigService(db_session)
    await config.set_value(RETENTION_DAYS_KEY, stored)
    assert await config.get_number(RETENTION_DAYS_KEY, 7) == 7
