"""TierGuard configuration — Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

NAS_MOUNT_PATH_ENV = "TIERGUARD_NAS_MOUNT_PATH"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "TierGuard"
    debug: bool = True
    log_level: str = "INFO"

    # Network
    host: str = "127.0.0.1"
    port: int = 8000
    api_prefix: str = "/api"
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # NAS tier: UNC share on Windows (\\server\share), mount point elsewhere
    nas_mount_path: Optional[str] = None

    # Storage roots (relative resolved from backend/ at runtime)
    data_dir: str = "./data"
    cache_dir: str = "./data/cache/files"
    nas_storage_dir: str = "./data/nas"
    database_path: str = "./data/tierguard.db"

    # Probes
    nas_probe_timeout_seconds: float = 10.0
    cache_probe_timeout_seconds: float = 5.0
    degraded_threshold_ms: int = 1000
    health_check_scheduler_enabled: bool = True

    # Pi-class hardware limits
    uvicorn_workers: int = 1
    max_db_connections: int = 5

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="TIERGUARD_",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str) and not value.startswith("["):
            return [o.strip() for o in value.split(",") if o.strip()]
        if isinstance(value, list):
            return value
        return ["http://localhost:5173"]

    @field_validator("nas_mount_path", mode="before")
    @classmethod
    def blank_mount_path_is_unset(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Ensure data directories are absolute."""
        base = Path(__file__).resolve().parent.parent  # backend/
        for field in ("data_dir", "cache_dir", "nas_storage_dir", "database_path"):
            val = getattr(self, field)
            if not Path(val).is_absolute():
                setattr(self, field, str(base / val))
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


class NasMountSettings(BaseSettings):
    """Only the NAS mount address, read on its own.

    Other TIERGUARD_ values are ignored, so a bad unrelated setting cannot
    break a probe.
    """

    nas_mount_path: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="TIERGUARD_",
        extra="ignore",
    )

    @field_validator("nas_mount_path", mode="before")
    @classmethod
    def blank_mount_path_is_unset(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)


def load_nas_mount_path() -> Optional[str]:
    """Read the NAS mount address fresh from the environment / .env.

    Bypasses the cached settings object so every probe sees the value
    configured at call time.
    """
    return NasMountSettings().nas_mount_path


settings = get_settings()
