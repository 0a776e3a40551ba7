"""NAS observability dashboard schemas."""

from datetime import datetime

from pydantic import Field

from tierguard.schemas.base import CamelModel
from tierguard.schemas.health import HealthStatus


class ObservabilityCurrent(CamelModel):
    """Live NAS status with capacity figures flattened for the dashboard."""
    status: HealthStatus
    response_time_ms: int
    checked_at: datetime
    error: str | None = None
    total_bytes: int | None = None
    used_bytes: int | None = None
    free_bytes: int | None = None
    usage_percent: float | None = None
    server_name: str | None = None


class HealthHistoryItem(CamelModel):
    status: HealthStatus
    response_time_ms: int
    total_bytes: int
    used_bytes: int
    checked_at: datetime


class HealthHistoryResponse(CamelModel):
    items: list[HealthHistoryItem]
    hours: int
    total_count: int
    healthy_percent: float  # healthy + degraded share of samples
    healthy_hours: float
    unhealthy_hours: float


class ObservabilitySettings(CamelModel):
    interval_minutes: int
    retention_days: int
    threshold_percent: int


class ObservabilitySettingsUpdate(CamelModel):
    interval_minutes: int | None = Field(default=None, ge=1, le=1440)
    retention_days: int | None = Field(default=None, ge=1, le=365)
    threshold_percent: int | None = Field(default=None, ge=1, le=100)
