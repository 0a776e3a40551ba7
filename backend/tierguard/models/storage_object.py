"""File storage object — one physical copy of a file in a storage tier."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from tierguard.models.base import Base


class StorageType(str, Enum):
    CACHE = "CACHE"
    NAS = "NAS"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    SYNCING = "SYNCING"
    MISSING = "MISSING"  # evicted from cache
    EVICTING = "EVICTING"
    ERROR = "ERROR"


class FileStorageObject(Base):
    __tablename__ = "file_storage_objects"
    __table_args__ = (
        UniqueConstraint("file_id", "storage_type", name="uq_storage_object_file_tier"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    file_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    storage_type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    object_key: Mapped[str] = mapped_column(Text, nullable=False)
    availability_status: Mapped[str] = mapped_column(
        String(20), default=AvailabilityStatus.AVAILABLE.value, nullable=False
    )
    access_count: Mapped[int] = mapped_column(Integer, default=0)
    lease_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<FileStorageObject(id={self.id}, {self.storage_type} "
            f"key='{self.object_key}')>"
        )
