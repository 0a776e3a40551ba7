"""Tests for the health check scheduler jobs."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tierguard.schemas.health import HealthResult, HealthStatus
from tierguard.services.health_history_service import HealthHistoryService
from tierguard.services.nas_status_cache import NasStatusCache
from tierguard.services.observability_service import INTERVAL_MINUTES_KEY
from tierguard.services.scheduler import HealthCheckScheduler
from tierguard.services.system_config_service import SystemConfigService


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def nas_health():
    probe = AsyncMock()
    probe.check_health.return_value = HealthResult(
        status=HealthStatus.HEALTHY,
        response_time_ms=5,
        checked_at=datetime.now(timezone.utc),
    )
    return probe


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(nas_health, session_factory, clock):
    return HealthCheckScheduler(nas_health, NasStatusCache(), session_factory=session_factory, clock=clock)


async def _history_count(session_factory):
    async with session_factory() as db:
        return len(await HealthHistoryService(db).recent(1))


class TestTick:
    @pytest.mark.asyncio
    async def test_first_tick_records(self, scheduler, nas_health, session_factory):
        await scheduler._tick()

        nas_health.check_health.assert_awaited_once()
        assert await _history_count(session_factory) == 1

    @pytest.mark.asyncio
    async def test_waits_for_default_interval(self, scheduler, nas_health, clock):
        await scheduler._tick()
        clock.now += 4 * 60
        await scheduler._tick()
        assert nas_health.check_health.await_count == 1

        clock.now += 60
        await scheduler._tick()
        assert nas_health.check_health.await_count == 2

    @pytest.mark.asyncio
    async def test_interval_change_applies_without_restart(self, scheduler, nas_health, clock, session_factory):
        await scheduler._tick()
        async with session_factory() as db:
            await SystemConfigService(db).set_value(INTERVAL_MINUTES_KEY, "1")

        clock.now += 60
        await scheduler._tick()
        assert nas_health.check_health.await_count == 2

    @pytest.mark.asyncio
    async def test_tick_swallows_database_errors(self, nas_health, clock):
        def broken_factory():
            raise RuntimeError("database is locked")

        scheduler = HealthCheckScheduler(nas_health, NasStatusCache(), session_factory=broken_factory, clock=clock)
        await scheduler._tick()
        nas_health.check_health.assert_not_awaited()


@pytest.mark.asyncio
async def test_cleanup_job_removes_expired_rows(scheduler, session_factory):
    now = datetime.now(timezone.utc)
    async with session_factory() as db:
        history = HealthHistoryService(db)
        for age in (timedelta(days=10), timedelta(days=8), timedelta(hours=2)):
            await history.record(HealthResult(
                status=HealthStatus.HEALTHY, response_time_ms=1, checked_at=now - age,
            ))

    await scheduler._cleanup()

    async with session_factory() as db:
        assert len(await HealthHistoryService(db).recent(24 * 30)) == 1


@pytest.mark.asyncio
async def test_start_registers_jobs(scheduler):
    scheduler.start()
    try:
        job_ids = {job.id for job in scheduler._scheduler.get_jobs()}
        assert job_ids == {"nas_health_tick", "cleanup_health_history"}
    finally:
        await scheduler.stop()
