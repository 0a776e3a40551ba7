"""NAS mount address resolution for the host platform.

Windows hosts address the NAS by network share (``\\\\server\\share``),
POSIX hosts by the directory it is mounted on. Configured values arrive
with arbitrary escaping depth (``\\\\\\\\server\\\\share`` out of JSON or
.env files), so share paths are normalized before being split.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

_SEPARATOR_RUN = re.compile(r"[\\/]+")


class HostPlatform(str, Enum):
    WINDOWS = "windows"
    POSIX = "posix"


class NasPathError(ValueError):
    """Configured mount address cannot be used on this platform."""


@dataclass(frozen=True)
class ShareAddress:
    server: str
    share: str
    sub_path: str = ""  # trailing segments below the share, if any


@dataclass(frozen=True)
class MountTarget:
    raw: str
    platform: HostPlatform
    path: str
    share: ShareAddress | None = None


def detect_platform() -> HostPlatform:
    """Map ``sys.platform`` onto the two probe strategies."""
    if sys.platform.startswith(("win", "cygwin")):
        return HostPlatform.WINDOWS
    return HostPlatform.POSIX


def is_network_share_path(raw: str) -> bool:
    return raw.startswith(("\\", "/"))


def is_posix_path(raw: str) -> bool:
    return raw.startswith("/")


def normalize_share_path(raw: str) -> str:
    """Collapse every run of ``\\`` or ``/`` into a single ``/``."""
    return _SEPARATOR_RUN.sub("/", raw)


def parse_share_path(raw: str) -> ShareAddress:
    """Extract server and share from a network share address."""
    normalized = normalize_share_path(raw)
    parts = [p for p in normalized.lstrip("/").split("/") if p]

    logger.debug("Share path parsed: raw=%s normalized=%s parts=%s", raw, normalized, parts)

    if len(parts) < 2:
        raise NasPathError(
            f"Cannot parse network share path (need server and share): {raw}"
        )
    return ShareAddress(server=parts[0], share=parts[1], sub_path="/".join(parts[2:]))


def resolve_mount_target(raw: str, platform: HostPlatform) -> MountTarget:
    """Validate *raw* for *platform* and return the address to probe."""
    if platform == HostPlatform.WINDOWS:
        if not is_network_share_path(raw):
            raise NasPathError(f"Not a valid network path: {raw}")
        return MountTarget(raw=raw, platform=platform, path=raw, share=parse_share_path(raw))

    if not is_posix_path(raw):
        raise NasPathError(f"Not a valid POSIX path: {raw}")
    return MountTarget(raw=raw, platform=platform, path=raw)
