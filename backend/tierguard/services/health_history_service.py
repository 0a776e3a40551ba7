"""NAS health history — persist probe results and prune old rows."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tierguard.models.nas_health_history import NasHealthHistory
from tierguard.schemas.health import HealthResult

logger = logging.getLogger(__name__)


class HealthHistoryService:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def record(self, result: HealthResult) -> NasHealthHistory:
        capacity = result.capacity
        row = NasHealthHistory(
            id=str(uuid.uuid4()),
            status=result.status.value,
            response_time_ms=result.response_time_ms,
            total_bytes=capacity.total_bytes if capacity else 0,
            used_bytes=capacity.used_bytes if capacity else 0,
            free_bytes=capacity.free_bytes if capacity else 0,
            error=result.error,
            checked_at=result.checked_at,
        )
        self._db.add(row)
        await self._db.commit()
        return row

    async def recent(self, hours: int) -> list[NasHealthHistory]:
        """Rows from the last *hours*, oldest first."""
        cutoff = datetime.now(timezone.utc) - timedelta(hours=hours)
        result = await self._db.execute(
            select(NasHealthHistory)
            .where(NasHealthHistory.checked_at >= cutoff)
            .order_by(NasHealthHistory.checked_at)
        )
        return list(result.scalars().all())

    async def cleanup(self, retention_days: int) -> int:
        """Delete rows older than *retention_days*. Returns deleted count."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)
        result = await self._db.execute(
            delete(NasHealthHistory).where(NasHealthHistory.checked_at < cutoff)
        )
        await self._db.commit()
        deleted = result.rowcount or 0
        if deleted:
            logger.info("Deleted %d NAS health history rows older than %d days", deleted, retention_days)
        return deleted
