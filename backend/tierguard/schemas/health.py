"""Storage health probe schemas."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from tierguard.schemas.base import CamelModel


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # reachable but slow
    UNHEALTHY = "unhealthy"


class CapacityReport(CamelModel):
    """Point-in-time capacity snapshot of the NAS tier."""
    total_bytes: int
    used_bytes: int
    free_bytes: int
    drive: str | None = None  # mapped drive letter or df filesystem
    provider: str | None = None  # UNC provider or df mount point


class HealthResult(CamelModel):
    """Outcome of one probe."""
    status: HealthStatus
    response_time_ms: int = Field(ge=0)
    checked_at: datetime
    capacity: CapacityReport | None = None
    error: str | None = None


class NasStatusSnapshot(CamelModel):
    """Last known NAS status, as held by the in-memory status cache."""
    status: HealthStatus
    available: bool  # false only when unhealthy
    last_checked_at: datetime
    last_error: str | None = None


class ServiceHealth(CamelModel):
    """Liveness of the TierGuard service itself."""
    status: str = "ok"
    version: str
    service: str = "tierguard"
