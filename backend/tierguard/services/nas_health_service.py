"""NAS health probe — connectivity and capacity of the NAS tier."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from tierguard.config import NAS_MOUNT_PATH_ENV, load_nas_mount_path, settings
from tierguard.schemas.health import HealthResult, HealthStatus
from tierguard.services.command_runner import CommandRunner
from tierguard.services.nas_capacity import CapacityQuery, capacity_query_for
from tierguard.services.nas_path import (
    HostPlatform,
    NasPathError,
    detect_platform,
    resolve_mount_target,
)

logger = logging.getLogger(__name__)


class NasHealthService:
    """Probes the configured NAS mount and classifies the outcome.

    The platform strategy is fixed at construction; the mount address is
    re-read on every call. ``check_health`` never raises.
    """

    def __init__(
        self,
        runner: CommandRunner | None = None,
        platform: HostPlatform | None = None,
        capacity_query: CapacityQuery | None = None,
        mount_path_source: Callable[[], Optional[str]] = load_nas_mount_path,
        timeout_seconds: float | None = None,
        degraded_threshold_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._platform = platform or detect_platform()
        self._capacity_query = capacity_query or capacity_query_for(
            self._platform, runner or CommandRunner()
        )
        self._mount_path_source = mount_path_source
        self._timeout = (
            timeout_seconds if timeout_seconds is not None else settings.nas_probe_timeout_seconds
        )
        self._degraded_threshold_ms = (
            degraded_threshold_ms if degraded_threshold_ms is not None
            else settings.degraded_threshold_ms
        )
        self._clock = clock
        logger.info("NAS health probe using %s strategy", self._platform.value)

    @property
    def platform(self) -> HostPlatform:
        return self._platform

    async def check_health(self) -> HealthResult:
        start = self._clock()

        try:
            mount_path = self._mount_path_source()
        except Exception as e:
            logger.error("NAS health check could not read mount path: %s", e)
            return self._result(
                start, HealthStatus.UNHEALTHY,
                error=f"Cannot read NAS mount path configuration ({NAS_MOUNT_PATH_ENV}): {e}",
            )

        if not mount_path:
            return self._result(
                start, HealthStatus.UNHEALTHY,
                error=f"NAS mount path is not configured ({NAS_MOUNT_PATH_ENV})",
            )

        try:
            target = resolve_mount_target(mount_path, self._platform)
        except NasPathError as e:
            logger.error("NAS health check rejected mount path: %s", e)
            return self._result(start, HealthStatus.UNHEALTHY, error=str(e))

        try:
            capacity = await asyncio.wait_for(
                self._capacity_query.check_capacity(target), self._timeout
            )
        except asyncio.TimeoutError:
            logger.error("NAS health check timed out after %ss: %s", self._timeout, mount_path)
            return self._result(
                start, HealthStatus.UNHEALTHY, error=f"Timeout after {self._timeout:g}s"
            )
        except Exception as e:
            logger.error("NAS health check failed: %s", e)
            return self._result(
                start, HealthStatus.UNHEALTHY, error=str(e) or type(e).__name__
            )

        elapsed_ms = self._elapsed_ms(start)
        status = classify_response_time(elapsed_ms, self._degraded_threshold_ms)
        if status == HealthStatus.DEGRADED:
            logger.warning("NAS responded slowly: %dms", elapsed_ms)
        return HealthResult(
            status=status,
            response_time_ms=elapsed_ms,
            checked_at=datetime.now(timezone.utc),
            capacity=capacity,
        )

    def _elapsed_ms(self, start: float) -> int:
        return max(0, int((self._clock() - start) * 1000))

    def _result(
        self,
        start: float,
        status: HealthStatus,
        error: str | None = None,
    ) -> HealthResult:
        return HealthResult(
            status=status,
            response_time_ms=self._elapsed_ms(start),
            checked_at=datetime.now(timezone.utc),
            error=error,
        )


def classify_response_time(response_time_ms: int, threshold_ms: int = 1000) -> HealthStatus:
    """Successful probes at or under the threshold are healthy, slower ones degraded."""
    if response_time_ms <= threshold_ms:
        return HealthStatus.HEALTHY
    return HealthStatus.DEGRADED
