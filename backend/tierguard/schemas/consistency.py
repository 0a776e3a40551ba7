"""Storage consistency (DB vs. physical storage) schemas."""

from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from tierguard.models.storage_object import StorageType
from tierguard.schemas.base import CamelModel


class IssueType(str, Enum):
    DB_ONLY = "DB_ONLY"  # metadata row, object missing in storage
    ORPHAN = "ORPHAN"  # storage object without a file record
    SIZE_MISMATCH = "SIZE_MISMATCH"
    ERROR = "ERROR"  # storage could not be queried


class StorageObjectRef(CamelModel):
    id: str
    object_key: str
    availability_status: str


class ConsistencyIssue(CamelModel):
    """One detected drift between the metadata DB and a storage tier."""
    file_id: str
    file_name: str
    issue_type: IssueType
    storage_type: StorageType
    description: str
    storage_object: StorageObjectRef | None = None
    db_size: int | None = None
    actual_size: int | None = None

    @model_validator(mode="after")
    def _check_sizes(self) -> "ConsistencyIssue":
        has_sizes = (self.db_size is not None, self.actual_size is not None)
        if self.issue_type == IssueType.SIZE_MISMATCH:
            if not all(has_sizes):
                raise ValueError("SIZE_MISMATCH issues require db_size and actual_size")
        elif any(has_sizes):
            raise ValueError(f"{self.issue_type.value} issues cannot carry sizes")
        return self


class ConsistencyCheckParams(CamelModel):
    """Which storage objects one reconciliation pass looks at."""
    storage_type: StorageType | None = None  # None = CACHE and NAS
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)
    sample: bool = False  # random sample instead of limit/offset page


class ConsistencyResult(CamelModel):
    total_checked: int
    inconsistencies: int
    issues: list[ConsistencyIssue]
    checked_at: datetime
