"""SQLAlchemy ORM models for TierGuard."""

from tierguard.models.base import Base
from tierguard.models.file_record import FileRecord
from tierguard.models.storage_object import AvailabilityStatus, FileStorageObject, StorageType
from tierguard.models.nas_health_history import NasHealthHistory
from tierguard.models.system_config import SystemConfig

__all__ = [
    "Base",
    "FileRecord",
    "FileStorageObject",
    "StorageType",
    "AvailabilityStatus",
    "NasHealthHistory",
    "SystemConfig",
]
