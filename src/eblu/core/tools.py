"""Bounded wrappers around the external Bluetooth commands."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shutil
from collections.abc import Sequence
from enum import Enum

from eblu.config import ToolsConfig
from eblu.errors import CommandFailed, CommandTimeout, ToolUnavailable

logger = logging.getLogger(__name__)

INSTALL_HINT = "Install with: brew install blueutil"


class ControlVerb(str, Enum):
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    PAIR = "pair"
    UNPAIR = "unpair"

    @property
    def flag(self) -> str:
        return f"--{self.value}"


async def run_command(argv: Sequence[str], timeout: float) -> str:
    """Run a command and return its stdout.

    Raises ToolUnavailable when the executable cannot be started,
    CommandTimeout when it runs longer than `timeout` seconds and
    CommandFailed on a non-zero exit status.
    """
    logger.debug("Running: %s", " ".join(argv))
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise ToolUnavailable(argv[0]) from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except (asyncio.TimeoutError, TimeoutError) as exc:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise CommandTimeout(argv, timeout) from exc
    except asyncio.CancelledError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        # reap the child even if the caller is cancelled again meanwhile
        await asyncio.shield(process.wait())
        raise

    stderr_text = stderr.decode("utf-8", errors="replace")
    if stderr_text.strip():
        logger.debug("stderr: %s", stderr_text.strip())
    if process.returncode != 0:
        raise CommandFailed(argv, process.returncode, stderr_text)
    return stdout.decode("utf-8", errors="replace")


def locate_tool(command: str, search_path: str) -> str:
    """Resolve the control utility to an executable path."""
    if os.path.isabs(command):
        if os.path.isfile(command) and os.access(command, os.X_OK):
            return command
        raise ToolUnavailable(command, INSTALL_HINT)

    path = shutil.which(command, path=search_path)
    if not path:
        raise ToolUnavailable(command, INSTALL_HINT)
    logger.debug("Using %s at %s", command, path)
    return path


class SystemProfilerSource:
    """Paired-device snapshot source."""

    def __init__(self, argv: Sequence[str], timeout: float) -> None:
        self._argv = list(argv)
        self._timeout = timeout

    async def fetch(self) -> str:
        return await run_command(self._argv, self._timeout)


class Blueutil:
    """Discovery scans and lifecycle control through blueutil."""

    def __init__(self, path: str, timeout: float) -> None:
        self.path = path
        self._timeout = timeout

    async def inquiry(self, duration: int) -> str:
        argv = [self.path, "--inquiry", str(duration), "--format", "json"]
        # the inquiry itself blocks for `duration` seconds
        return await run_command(argv, duration + self._timeout)

    async def control(self, verb: ControlVerb, address: str) -> None:
        await run_command([self.path, verb.flag, address], self._timeout)


def build_snapshot_source(config: ToolsConfig) -> SystemProfilerSource:
    return SystemProfilerSource(config.snapshot_command, config.command_timeout)


def build_blueutil(config: ToolsConfig) -> Blueutil:
    path = locate_tool(config.control_command, config.search_path)
    return Blueutil(path, config.command_timeout)
