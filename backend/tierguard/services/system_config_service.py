"""Admin-editable settings stored in the system_configs table."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from tierguard.models.system_config import SystemConfig

logger = logging.getLogger(__name__)


class SystemConfigService:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def get_number(self, key: str, default: int) -> int:
        row = await self._db.get(SystemConfig, key)
        if row is None:
            return default
        try:
            return int(float(row.value))
        except (ValueError, OverflowError):
            logger.warning("Config %s has non-numeric value %r, using %s", key, row.value, default)
            return default

    async def set_value(
        self,
        key: str,
        value: str,
        updated_by: str | None = None,
        description: str | None = None,
    ) -> SystemConfig:
        row = await self._db.get(SystemConfig, key)
        if row is None:
            row = SystemConfig(key=key, value=value, description=description, updated_by=updated_by)
            self._db.add(row)
        else:
            row.value = value
            row.updated_by = updated_by
            row.updated_at = datetime.now(timezone.utc)
            if description is not None:
                row.description = description
        await self._db.commit()
        return row
