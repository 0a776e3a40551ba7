"""APScheduler-based background jobs for NAS health recording."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession

from tierguard.database import async_session
from tierguard.services.health_history_service import HealthHistoryService
from tierguard.services.observability_service import (
    DEFAULT_INTERVAL_MINUTES,
    INTERVAL_MINUTES_KEY,
    ObservabilityService,
)
from tierguard.services.system_config_service import SystemConfigService

if TYPE_CHECKING:
    from tierguard.services.nas_health_service import NasHealthService
    from tierguard.services.nas_status_cache import NasStatusCache

logger = logging.getLogger(__name__)


class HealthCheckScheduler:
    """Hosts the periodic NAS probe and the history cleanup.

    The probe job ticks every minute and only runs a check once the
    interval configured in system_configs has elapsed, so interval changes
    apply without a restart.
    """

    TICK_SECONDS = 60

    def __init__(
        self,
        nas_health: NasHealthService,
        status_cache: NasStatusCache,
        session_factory: Callable[[], AsyncSession] = async_session,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._nas_health = nas_health
        self._status_cache = status_cache
        self._session_factory = session_factory
        self._clock = clock
        self._last_check: float | None = None
        self._scheduler = AsyncIOScheduler(
            job_defaults={"coalesce": True, "max_instances": 1}
        )

    def start(self) -> None:
        """Register and start the health jobs."""
        self._scheduler.add_job(
            self._tick,
            "interval",
            seconds=self.TICK_SECONDS,
            id="nas_health_tick",
            name="Record NAS health when interval elapsed",
        )

        # Daily history cleanup (at 00:05)
        self._scheduler.add_job(
            self._cleanup,
            "cron",
            hour=0,
            minute=5,
            id="cleanup_health_history",
            name="Delete expired NAS health history",
        )

        self._scheduler.start()
        logger.info("Health check scheduler started — tick every %ds", self.TICK_SECONDS)

    async def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Health check scheduler stopped")

    def _observability(self, db: AsyncSession) -> ObservabilityService:
        return ObservabilityService(
            nas_health=self._nas_health,
            status_cache=self._status_cache,
            history=HealthHistoryService(db),
            config=SystemConfigService(db),
        )

    async def _tick(self) -> None:
        """Run a recorded health check if the configured interval has passed."""
        try:
            async with self._session_factory() as db:
                interval_minutes = await SystemConfigService(db).get_number(
                    INTERVAL_MINUTES_KEY, DEFAULT_INTERVAL_MINUTES
                )
                now = self._clock()
                if self._last_check is not None and now - self._last_check < interval_minutes * 60:
                    return

                self._last_check = now
                await self._observability(db).record_health_check()
        except Exception as e:
            logger.error("Scheduled health check failed: %s", e)

    async def _cleanup(self) -> None:
        try:
            async with self._session_factory() as db:
                deleted = await self._observability(db).cleanup_old_history()
                if deleted:
                    logger.info("Cleaned up %d old health history records", deleted)
        except Exception as e:
            logger.error("Health history cleanup failed: %s", e)
