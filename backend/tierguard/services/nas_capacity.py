"""Platform-specific NAS capacity queries.

Windows: PowerShell/CIM lookup of the mapped drive backing the share.
POSIX: ``df`` in byte units on the mount point.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any

from tierguard.schemas.health import CapacityReport
from tierguard.services.command_runner import CommandRunner
from tierguard.services.nas_path import HostPlatform, MountTarget, parse_share_path

logger = logging.getLogger(__name__)

SHARE_SERVER_ENV = "TIERGUARD_SHARE_SERVER"
SHARE_NAME_ENV = "TIERGUARD_SHARE_NAME"

# Server/share arrive through the environment, never interpolated into the script.
# -like is case-insensitive, so the provider match is too.
_MAPPED_DRIVE_SCRIPT = " ".join(
    """
    $server = $env:TIERGUARD_SHARE_SERVER;
    $share = $env:TIERGUARD_SHARE_NAME;
    $mapped = Get-CimInstance Win32_MappedLogicalDisk | Where-Object {
      $_.ProviderName -like "*$server*" -and $_.ProviderName -like "*$share*"
    } | Select-Object -First 1;
    if ($mapped) {
      $drive = Get-CimInstance Win32_LogicalDisk -Filter "DeviceID='$($mapped.DeviceID)'";
      [PSCustomObject]@{
        Total = [int64]$drive.Size;
        Free = [int64]$drive.FreeSpace;
        Used = [int64]($drive.Size - $drive.FreeSpace);
        Drive = $drive.DeviceID;
        Provider = $mapped.ProviderName
      } | ConvertTo-Json -Compress
    } else {
      throw "No mapped drive found for network share"
    }
    """.split()
)


class CapacityQueryError(RuntimeError):
    """Capacity could not be determined or failed validation."""


class CapacityQuery(ABC):
    """Reads the capacity of the NAS behind a resolved mount target."""

    @abstractmethod
    async def check_capacity(self, target: MountTarget) -> CapacityReport:
        ...


class WindowsShareCapacityQuery(CapacityQuery):
    def __init__(self, runner: CommandRunner):
        self._runner = runner

    async def check_capacity(self, target: MountTarget) -> CapacityReport:
        share = target.share or parse_share_path(target.raw)
        logger.debug("Querying mapped drive for \\\\%s\\%s", share.server, share.share)

        result = await self._runner.run(
            ["powershell", "-NoProfile", "-NonInteractive", "-Command", _MAPPED_DRIVE_SCRIPT],
            env={SHARE_SERVER_ENV: share.server, SHARE_NAME_ENV: share.share},
        )
        return parse_mapped_drive_output(result.stdout, share.server, share.share)


class PosixMountCapacityQuery(CapacityQuery):
    def __init__(self, runner: CommandRunner):
        self._runner = runner

    async def check_capacity(self, target: MountTarget) -> CapacityReport:
        path = target.path
        # A hung NFS/SMB mount blocks access(); keep it off the event loop.
        readable = await asyncio.to_thread(os.access, path, os.F_OK | os.R_OK)
        if not readable:
            raise CapacityQueryError(f"Cannot access NAS path: {path}")

        # -P keeps each filesystem on one line, -B1 reports bytes
        result = await self._runner.run(["df", "-P", "-B1", "--", path])
        report = parse_df_output(result.stdout, path)
        logger.debug(
            "df capacity: filesystem=%s total=%d used=%d free=%d mount=%s",
            report.drive, report.total_bytes, report.used_bytes,
            report.free_bytes, report.provider,
        )
        return report


def capacity_query_for(platform: HostPlatform, runner: CommandRunner) -> CapacityQuery:
    if platform == HostPlatform.WINDOWS:
        return WindowsShareCapacityQuery(runner)
    return PosixMountCapacityQuery(runner)


def parse_mapped_drive_output(stdout: str, server: str, share: str) -> CapacityReport:
    """Parse and validate the JSON emitted by the mapped-drive script."""
    text = stdout.strip()
    if not text:
        raise CapacityQueryError(f"Mapped drive query returned no output for \\\\{server}\\{share}")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CapacityQueryError(f"Cannot parse mapped drive output: {text}") from e
    if not isinstance(data, dict):
        raise CapacityQueryError(f"Unexpected mapped drive output: {text}")

    drive = data.get("Drive")
    provider = data.get("Provider")
    if not drive:
        raise CapacityQueryError(
            f"No mapped drive matched \\\\{server}\\{share} (provider: {provider or 'none'})"
        )

    total = _as_int(data.get("Total"), "Total", text)
    free = _as_int(data.get("Free"), "Free", text)
    used = _as_int(data["Used"], "Used", text) if data.get("Used") is not None else total - free

    if total <= 0:
        raise CapacityQueryError(
            f"Drive {drive} reports no capacity (provider: {provider or 'none'})"
        )

    # Loose -like matching can pick an unrelated drive; require the exact share prefix.
    normalized_provider = str(provider or "").replace("\\", "/").lower()
    expected = f"//{server}/{share}".lower()
    if expected not in normalized_provider:
        raise CapacityQueryError(
            f"Provider {provider} does not match expected share \\\\{server}\\{share}"
        )

    return CapacityReport(
        total_bytes=total,
        used_bytes=used,
        free_bytes=free,
        drive=str(drive),
        provider=str(provider),
    )


def parse_df_output(stdout: str, path: str) -> CapacityReport:
    """Parse ``df -P -B1`` output for a single path."""
    lines = [line for line in stdout.splitlines() if line.strip()]
    if len(lines) < 2:
        raise CapacityQueryError(
            f"Cannot parse df output: expected header and data line, got {len(lines)} line(s)"
        )

    data_line = lines[-1].strip()
    parts = data_line.split()
    # Filesystem 1-blocks Used Available Capacity Mounted-on
    if len(parts) < 6:
        raise CapacityQueryError(
            f"Cannot parse df output: only {len(parts)} columns - {data_line}"
        )

    try:
        total, used, free = (int(p) for p in parts[1:4])
    except ValueError as e:
        raise CapacityQueryError(f"Cannot parse capacity from df output: {data_line}") from e

    if total == 0:
        raise CapacityQueryError(f"Mounted path reports zero total capacity: {path}")

    return CapacityReport(
        total_bytes=total,
        used_bytes=used,
        free_bytes=free,
        drive=parts[0],
        provider=" ".join(parts[5:]),  # mount points may contain spaces
    )


def _as_int(value: Any, field: str, raw: str) -> int:
    if isinstance(value, bool) or value is None:
        raise CapacityQueryError(f"Missing or invalid {field} in mapped drive output: {raw}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise CapacityQueryError(f"Invalid {field} in mapped drive output: {raw}") from e
