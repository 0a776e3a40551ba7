"""In-memory NAS availability status shared across the process."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from tierguard.schemas.health import HealthStatus, NasStatusSnapshot

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class NasStatusCache:
    """Latest known NAS status.

    Starts optimistic (healthy) so requests are served before the first
    probe completes. Probe results may move the status anywhere; error
    reports from other callers can only downgrade it to unhealthy.
    """

    def __init__(self) -> None:
        self._status = HealthStatus.HEALTHY
        self._last_checked_at = _EPOCH
        self._last_error: str | None = None

    @property
    def status(self) -> HealthStatus:
        return self._status

    def update_from_health_check(self, status: str, error: str | None = None) -> None:
        previous = self._status
        self._status = _normalize_status(status)
        self._last_checked_at = datetime.now(timezone.utc)
        self._last_error = error

        if previous != self._status:
            logger.warning(
                "NAS status: %s -> %s%s",
                previous.value, self._status.value,
                f" ({error})" if error else "",
            )

    def mark_unhealthy(self, error: str) -> None:
        if self._status == HealthStatus.UNHEALTHY:
            return

        previous = self._status
        self._status = HealthStatus.UNHEALTHY
        self._last_checked_at = datetime.now(timezone.utc)
        self._last_error = error
        logger.error("NAS status forced: %s -> unhealthy (%s)", previous.value, error)

    def is_available(self) -> bool:
        """Degraded is slow but usable; only unhealthy blocks NAS access."""
        return self._status != HealthStatus.UNHEALTHY

    def snapshot(self) -> NasStatusSnapshot:
        return NasStatusSnapshot(
            status=self._status,
            available=self.is_available(),
            last_checked_at=self._last_checked_at,
            last_error=self._last_error,
        )


def _normalize_status(status: str) -> HealthStatus:
    try:
        return HealthStatus(status)
    except ValueError:
        logger.warning("Unknown NAS status %r, treating as unhealthy", status)
        return HealthStatus.UNHEALTHY
