"""Cache tier health probe — write, read back and delete a probe object."""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Callable

from tierguard.config import settings
from tierguard.schemas.health import HealthResult, HealthStatus
from tierguard.services.nas_health_service import classify_response_time
from tierguard.services.storage_backends import StorageBackend

logger = logging.getLogger(__name__)

PROBE_PREFIX = "__health_check__"


class CacheHealthService:
    def __init__(
        self,
        backend: StorageBackend,
        timeout_seconds: float | None = None,
        degraded_threshold_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._backend = backend
        self._timeout = (
            timeout_seconds if timeout_seconds is not None else settings.cache_probe_timeout_seconds
        )
        self._degraded_threshold_ms = (
            degraded_threshold_ms if degraded_threshold_ms is not None
            else settings.degraded_threshold_ms
        )
        self._clock = clock

    async def check_health(self) -> HealthResult:
        start = self._clock()
        key = f"{PROBE_PREFIX}/{int(time.time() * 1000)}_{secrets.token_hex(4)}"
        payload = f"health_check_{key}"

        try:
            await asyncio.wait_for(self._round_trip(key, payload), self._timeout)
            elapsed_ms = self._elapsed_ms(start)
            return HealthResult(
                status=classify_response_time(elapsed_ms, self._degraded_threshold_ms),
                response_time_ms=elapsed_ms,
                checked_at=datetime.now(timezone.utc),
            )
        except asyncio.TimeoutError:
            error = f"Timeout after {self._timeout:g}s"
        except Exception as e:
            error = str(e) or type(e).__name__
        finally:
            await self._cleanup(key)

        logger.error("Cache health check failed: %s", error)
        return HealthResult(
            status=HealthStatus.UNHEALTHY,
            response_time_ms=self._elapsed_ms(start),
            checked_at=datetime.now(timezone.utc),
            error=error,
        )

    async def _round_trip(self, key: str, payload: str) -> None:
        await self._backend.write(key, payload.encode("utf-8"))
        content = (await self._backend.read(key)).decode("utf-8", errors="replace")
        if content != payload:
            raise RuntimeError(
                f"Content mismatch (expected: {payload}, got: {content})"
            )

    async def _cleanup(self, key: str) -> None:
        try:
            await self._backend.delete(key)
        except Exception as e:
            logger.warning("Could not remove cache probe object %s: %s", key, e)

    def _elapsed_ms(self, start: float) -> int:
        return max(0, int((self._clock() - start) * 1000))
