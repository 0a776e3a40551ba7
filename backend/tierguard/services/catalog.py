"""Read-only access to file metadata and the storage-object catalog."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tierguard.models.file_record import FileRecord
from tierguard.models.storage_object import FileStorageObject, StorageType

logger = logging.getLogger(__name__)


class FileLookup(Protocol):
    async def find_file_by_id(self, file_id: str) -> FileRecord | None:
        ...


class StorageObjectCatalog(Protocol):
    async def find_by_storage_type(
        self, storage_type: StorageType, limit: int, offset: int
    ) -> list[FileStorageObject]:
        ...

    async def sample_by_storage_type(
        self, storage_type: StorageType, limit: int
    ) -> list[FileStorageObject]:
        ...


class FileRepository:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_file_by_id(self, file_id: str) -> FileRecord | None:
        return await self._db.get(FileRecord, file_id)


class StorageObjectRepository:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_by_storage_type(
        self, storage_type: StorageType, limit: int, offset: int
    ) -> list[FileStorageObject]:
        """Deterministic page, oldest first."""
        stmt = (
            select(FileStorageObject)
            .where(FileStorageObject.storage_type == storage_type.value)
            .order_by(FileStorageObject.created_at, FileStorageObject.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def sample_by_storage_type(
        self, storage_type: StorageType, limit: int
    ) -> list[FileStorageObject]:
        """Random sample of up to *limit* objects."""
        stmt = (
            select(FileStorageObject)
            .where(FileStorageObject.storage_type == storage_type.value)
            .order_by(func.random())
            .limit(limit)
        )
        result = await self._db.execute(stmt)
        return list(result.scalars().all())
