"""
Run external diagnostic tools and capture their output.

Non-zero exits are returned as ordinary :class:`CommandOutcome` values; the
caller decides what a failing ``lsof`` or ``kill`` means. Launch failures
and timeouts raise.
"""

from __future__ import annotations

import asyncio
import locale
import logging
import subprocess
import sys
from typing import Any, Dict, Optional, Protocol, Sequence

from .config import TerminatorSettings
from .errors import CommandSpawnError, CommandTimeoutError
from .models import CommandOutcome

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_KILL_GRACE_MS = 5000

_TOOL_MISSING_MARKERS = ("command not found", "No such file or directory", "is not recognized")


class CommandExecutor(Protocol):
    """Anything that can run a program and return its outcome."""

    async def run(self, program: str, args: Sequence[str] = (), timeout_ms: Optional[int] = None) -> CommandOutcome: ...


def format_command(program: str, args: Sequence[str]) -> str:
    return " ".join([program, *args])


def is_tool_missing(stderr: str) -> bool:
    """True when stderr says the program itself could not be found."""
    return any(marker in stderr for marker in _TOOL_MISSING_MARKERS)


def _spawn_options() -> Dict[str, Any]:
    if sys.platform == "win32":
        return {"creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0)}
    return {}


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode(locale.getpreferredencoding(False) or "utf-8", errors="replace")


class CommandRunner:
    """Spawn a program, collect stdout/stderr and enforce a deadline."""

    def __init__(
        self,
        *,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        kill_grace_ms: int = DEFAULT_KILL_GRACE_MS,
    ) -> None:
        self.default_timeout_ms = default_timeout_ms
        self.kill_grace_ms = kill_grace_ms

    @classmethod
    def from_settings(cls, settings: TerminatorSettings) -> "CommandRunner":
        return cls(default_timeout_ms=settings.command_timeout_ms, kill_grace_ms=settings.command_kill_grace_ms)

    async def run(self, program: str, args: Sequence[str] = (), timeout_ms: Optional[int] = None) -> CommandOutcome:
        """
        Execute ``program`` with ``args``.

        Args:
            program: Executable name, resolved through PATH
            args: Arguments passed verbatim (no shell)
            timeout_ms: Deadline in milliseconds; the runner default when omitted

        Returns:
            CommandOutcome with decoded output and the exit code

        Raises:
            CommandSpawnError: If the program cannot be launched
            CommandTimeoutError: If the program does not finish in time
        """
        args = list(args)
        command = format_command(program, args)
        deadline_ms = self.default_timeout_ms if timeout_ms is None else timeout_ms

        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **_spawn_options(),
            )
        except OSError as exc:
            logger.debug("Failed to launch %s: %s", command, exc)
            raise CommandSpawnError.from_os_error(command, exc) from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=deadline_ms / 1000)
        except asyncio.TimeoutError as exc:
            logger.debug("Command timed out after %sms: %s", deadline_ms, command)
            await self._stop_child(process, command)
            raise CommandTimeoutError(command, deadline_ms) from exc
        except asyncio.CancelledError:
            await self._stop_child(process, command)
            raise

        exit_code = process.returncode if process.returncode is not None else 1
        return CommandOutcome(stdout=_decode(stdout), stderr=_decode(stderr), exit_code=exit_code, command=command)

    async def _stop_child(self, process: asyncio.subprocess.Process, command: str) -> None:
        """Interrupt the child, then force-kill it if it outlives the grace window."""
        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:  # policy_guard: allow-silent-handler
            return

        grace_seconds = self.kill_grace_ms / 1000
        try:
            await asyncio.wait_for(process.wait(), timeout=grace_seconds)
        except asyncio.TimeoutError:  # policy_guard: allow-silent-handler
            logger.debug("Command ignored interrupt for %sms; killing: %s", self.kill_grace_ms, command)
        else:
            return

        try:
            process.kill()
        except ProcessLookupError:  # policy_guard: allow-silent-handler
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=grace_seconds)
        except asyncio.TimeoutError:  # policy_guard: allow-silent-handler
            logger.warning("Command %s did not exit after kill", command)


__all__ = [
    "CommandExecutor",
    "CommandRunner",
    "DEFAULT_KILL_GRACE_MS",
    "DEFAULT_TIMEOUT_MS",
    "format_command",
    "is_tool_missing",
]
