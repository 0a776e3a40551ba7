"""Async external command execution for storage probes."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    """Command could not be started or exited non-zero."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Runs an argv list without a shell and always reaps the child.

    If the awaiting task is cancelled or *timeout* expires, the process is
    killed before the exception propagates, so no child outlives the call.
    """

    async def run(
        self,
        args: Sequence[str],
        *,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        proc_env = {**os.environ, **env} if env else None
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=proc_env,
            )
        except FileNotFoundError as e:
            raise CommandError(f"Command not found: {args[0]}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
        finally:
            if proc.returncode is None:
                logger.warning("Killing unfinished command: %s", args[0])
                proc.kill()
                await proc.wait()

        result = CommandResult(
            args=tuple(args),
            returncode=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if result.returncode != 0:
            message = result.stderr.strip() or f"{args[0]} exited with code {result.returncode}"
            raise CommandError(message, returncode=result.returncode)
        return result
