"""Tests for the async command runner — exit codes, missing binaries, timeouts."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tierguard.services.command_runner import CommandError, CommandRunner


def _fake_proc(stdout=b"", stderr=b"", returncode=0, hang=False):
    proc = MagicMock()
    proc.returncode = None

    async def communicate():
        if hang:
            await asyncio.sleep(10)
        proc.returncode = returncode
        return stdout, stderr

    async def wait():
        return proc.returncode

    def kill():
        proc.returncode = -9

    proc.communicate = communicate
    proc.wait = AsyncMock(side_effect=wait)
    proc.kill = MagicMock(side_effect=kill)
    return proc


class TestCommandRunner:
    @pytest.mark.asyncio
    async def test_success_decodes_output(self):
        proc = _fake_proc(stdout=b"ok\n")
        with patch(
            "tierguard.services.command_runner.asyncio.create_subprocess_exec",
            AsyncMock(return_value=proc),
        ) as spawn:
            result = await CommandRunner().run(["df", "-P"])

        assert result.stdout == "ok\n"
        assert result.returncode == 0
        assert spawn.call_args.args == ("df", "-P")
        assert spawn.call_args.kwargs["env"] is None

    @pytest.mark.asyncio
    async def test_env_is_merged_over_process_environment(self, monkeypatch):
        monkeypatch.setenv("KEEP_ME", "1")
        proc = _fake_proc()
        with patch(
            "tierguard.services.command_runner.asyncio.create_subprocess_exec",
            AsyncMock(return_value=proc),
        ) as spawn:
            await CommandRunner().run(["powershell"], env={"TIERGUARD_SHARE_NAME": "web"})

        env = spawn.call_args.kwargs["env"]
        assert env["TIERGUARD_SHARE_NAME"] == "web"
        assert env["KEEP_ME"] == "1"

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises_with_stderr(self):
        proc = _fake_proc(stderr=b"df: /mnt/nas: No such file or directory\n", returncode=1)
        with patch(
            "tierguard.services.command_runner.asyncio.create_subprocess_exec",
            AsyncMock(return_value=proc),
        ):
            with pytest.raises(CommandError, match="No such file") as exc:
                await CommandRunner().run(["df", "/mnt/nas"])
        assert exc.value.returncode == 1

    @pytest.mark.asyncio
    async def test_nonzero_exit_without_stderr(self):
        proc = _fake_proc(returncode=2)
        with patch(
            "tierguard.services.command_runner.asyncio.create_subprocess_exec",
            AsyncMock(return_value=proc),
        ):
            with pytest.raises(CommandError, match="df exited with code 2"):
                await CommandRunner().run(["df"])

    @pytest.mark.asyncio
    async def test_missing_binary(self):
        with patch(
            "tierguard.services.command_runner.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError()),
        ):
            with pytest.raises(CommandError, match="Command not found: powershell"):
                await CommandRunner().run(["powershell"])

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        proc = _fake_proc(hang=True)
        with patch(
            "tierguard.services.command_runner.asyncio.create_subprocess_exec",
            AsyncMock(return_value=proc),
        ):
            with pytest.raises(asyncio.TimeoutError):
                await CommandRunner().run(["df"], timeout=0.05)

        proc.kill.assert_called_once()
        proc.wait.assert_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_kills_process(self):
        proc = _fake_proc(hang=True)
        with patch(
            "tierguard.services.command_runner.asyncio.create_subprocess_exec",
            AsyncMock(return_value=proc),
        ):
            task = asyncio.create_task(CommandRunner().run(["df"]))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        proc.kill.assert_called_once()
