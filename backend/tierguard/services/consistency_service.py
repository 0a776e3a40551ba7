"""Storage consistency check — metadata DB vs. what each tier really holds."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping

from tierguard.models.file_record import FileRecord
from tierguard.models.storage_object import FileStorageObject, StorageType
from tierguard.schemas.consistency import (
    ConsistencyCheckParams,
    ConsistencyIssue,
    ConsistencyResult,
    IssueType,
    StorageObjectRef,
)
from tierguard.services.catalog import FileLookup, StorageObjectCatalog
from tierguard.services.storage_backends import StorageBackend

logger = logging.getLogger(__name__)

UNKNOWN_FILE_NAME = "Unknown"


class StorageConsistencyService:
    """Scans a window of storage objects and reports drift.

    Objects are checked one at a time so a scan never puts more than one
    request at a time on the NAS.
    """

    def __init__(
        self,
        files: FileLookup,
        catalogs: Mapping[StorageType, StorageObjectCatalog],
        backends: Mapping[StorageType, StorageBackend],
    ):
        self._files = files
        self._catalogs = catalogs
        self._backends = backends

    async def check_consistency(self, params: ConsistencyCheckParams) -> ConsistencyResult:
        storage_types = (
            [params.storage_type] if params.storage_type else [StorageType.CACHE, StorageType.NAS]
        )

        issues: list[ConsistencyIssue] = []
        total_checked = 0

        for storage_type in storage_types:
            catalog = self._catalogs[storage_type]
            if params.sample:
                objects = await catalog.sample_by_storage_type(storage_type, params.limit)
            else:
                objects = await catalog.find_by_storage_type(
                    storage_type, params.limit, params.offset
                )
            total_checked += len(objects)

            for storage_object in objects:
                issue = await self._check_object(storage_object, storage_type)
                if issue is not None:
                    issues.append(issue)

        if issues:
            logger.info("Consistency check: %d issue(s) in %d object(s)", len(issues), total_checked)

        return ConsistencyResult(
            total_checked=total_checked,
            inconsistencies=len(issues),
            issues=issues,
            checked_at=datetime.now(timezone.utc),
        )

    async def _check_object(
        self, storage_object: FileStorageObject, storage_type: StorageType
    ) -> ConsistencyIssue | None:
        file = await self._files.find_file_by_id(storage_object.file_id)
        if file is None:
            return _issue(
                storage_object, storage_type, IssueType.ORPHAN,
                "Storage object has no file record (orphan)",
            )

        backend = self._backends[storage_type]
        try:
            if not await backend.exists(storage_object.object_key):
                return _issue(
                    storage_object, storage_type, IssueType.DB_ONLY,
                    "File record exists but object is missing from storage",
                    file=file,
                )

            actual_size = await backend.size_of(storage_object.object_key)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.warning("Storage check failed for %s: %s", storage_object.object_key, message)
            return _issue(
                storage_object, storage_type, IssueType.ERROR,
                f"Error while checking storage: {message}",
                file=file,
            )

        if actual_size != file.size_bytes:
            return _issue(
                storage_object, storage_type, IssueType.SIZE_MISMATCH,
                f"DB size ({file.size_bytes}) does not match actual size ({actual_size})",
                file=file,
                db_size=file.size_bytes,
                actual_size=actual_size,
            )
        return None


def _issue(
    storage_object: FileStorageObject,
    storage_type: StorageType,
    issue_type: IssueType,
    description: str,
    file: FileRecord | None = None,
    db_size: int | None = None,
    actual_size: int | None = None,
) -> ConsistencyIssue:
    return ConsistencyIssue(
        file_id=file.id if file else storage_object.file_id,
        file_name=file.name if file else UNKNOWN_FILE_NAME,
        issue_type=issue_type,
        storage_type=storage_type,
        description=description,
        storage_object=StorageObjectRef(
            id=storage_object.id,
            object_key=storage_object.object_key,
            availability_status=getattr(
                storage_object.availability_status, "value", storage_object.availability_status
            ),
        ),
        db_size=db_size,
        actual_size=actual_size,
    )
