"""Pieces shared by the Linux and macOS strategies: lsof, ps and kill."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional

from ..command_runner import CommandExecutor, is_tool_missing
from ..config import TerminatorSettings
from ..errors import CommandSpawnError, CommandTimeoutError, PortTerminatorError, ProcessKillError
from ..models import ProcessRecord, deduplicate_records
from .base import SignalDelivery, protocols_for
from .escalation import classify_kill_failure, escalate_kill

logger = logging.getLogger(__name__)

_LSOF_MIN_COLUMNS = 9
_LSOF_NAME_COLUMN = 8

_PERMISSION_MARKERS = ("Operation not permitted", "Permission denied")
_GONE_MARKERS = ("No such process",)


@dataclass(frozen=True)
class LsofRow:
    command: str
    pid: int
    user: str
    protocol: str


def local_endpoint(address: str) -> str:
    """Strip the remote half of an lsof ``local->remote`` NAME column."""
    return address.split("->", 1)[0]


def parse_lsof_output(stdout: str, port: int, protocol: str) -> List[LsofRow]:
    """
    Parse ``lsof -i <proto>:<port> -P -n`` output.

    Header, blank and short lines are skipped, as are rows whose local endpoint
    does not end in ``:<port>`` (clients connected to the port from elsewhere).
    """
    rows: List[LsofRow] = []
    suffix = f":{port}"
    for line in stdout.splitlines():
        if not line.strip() or line.startswith("COMMAND"):
            continue
        parts = line.split()
        if len(parts) < _LSOF_MIN_COLUMNS:
            continue
        try:
            pid = int(parts[1])
        except ValueError:
            continue
        if not local_endpoint(parts[_LSOF_NAME_COLUMN]).endswith(suffix):
            continue
        rows.append(LsofRow(command=parts[0], pid=pid, user=parts[2], protocol=protocol))
    return rows


async def _ps_field(runner: CommandExecutor, pid: int, field: str) -> Optional[str]:
    try:
        outcome = await runner.run("ps", ["-p", str(pid), "-o", f"{field}="])
    except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
        logger.debug("ps lookup of %s for %s failed: %s", field, pid, exc)
        return None
    if not outcome.ok:
        return None
    return outcome.stdout.strip() or None


async def get_process_command(runner: CommandExecutor, pid: int) -> Optional[str]:
    """Full command line of ``pid``; None when ps cannot tell."""
    return await _ps_field(runner, pid, "command")


async def get_process_user(runner: CommandExecutor, pid: int) -> Optional[str]:
    return await _ps_field(runner, pid, "user")


async def find_with_lsof(
    runner: CommandExecutor,
    port: int,
    protocol: str,
) -> List[ProcessRecord]:
    """
    Resolve owners of ``port`` with lsof, enriching each with its command line.

    Raises:
        CommandSpawnError: If lsof is not installed; callers fall back on this
        CommandTimeoutError: If lsof hangs
    """
    rows: List[LsofRow] = []
    for proto in protocols_for(protocol):
        outcome = await runner.run("lsof", ["-i", f"{proto}:{port}", "-P", "-n"])
        if not outcome.ok and is_tool_missing(outcome.stderr):
            raise CommandSpawnError(
                f"lsof is not available: {outcome.stderr.strip()}",
                command=outcome.command,
                stderr=outcome.stderr,
                exit_code=outcome.exit_code,
            )
        # lsof exits 1 when nothing matches, so the rows decide.
        rows.extend(parse_lsof_output(outcome.stdout, port, proto))

    records = deduplicate_records(
        ProcessRecord(pid=row.pid, name=row.command, port=port, protocol=row.protocol, user=row.user) for row in rows
    )
    enriched: List[ProcessRecord] = []
    for record in records:
        command = await get_process_command(runner, record.pid)
        enriched.append(replace(record, command=command))
    return enriched


class UnixProcessTerminator:
    """Terminates processes with ``kill`` on Linux and macOS."""

    def __init__(self, runner: CommandExecutor, settings: TerminatorSettings) -> None:
        self._runner = runner
        self._settings = settings

    async def _signal(self, pid: int, signal: str) -> SignalDelivery:
        try:
            outcome = await self._runner.run("kill", [f"-{signal}", str(pid)])
        except (CommandSpawnError, CommandTimeoutError) as exc:
            raise ProcessKillError.for_pid(pid, f"SIG{signal}", str(exc)) from exc
        if outcome.ok:
            return SignalDelivery.SENT
        return classify_kill_failure(
            pid,
            outcome,
            signal=f"SIG{signal}",
            permission_markers=_PERMISSION_MARKERS,
            gone_markers=_GONE_MARKERS,
        )

    async def send_graceful(self, pid: int) -> SignalDelivery:
        return await self._signal(pid, "TERM")

    async def send_forceful(self, pid: int) -> SignalDelivery:
        return await self._signal(pid, "KILL")

    async def is_running(self, pid: int) -> bool:
        """``kill -0`` probe; any failure counts as the process being gone."""
        try:
            outcome = await self._runner.run("kill", ["-0", str(pid)])
        except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Liveness probe for %s failed, assuming exited: %s", pid, exc)
            return False
        return outcome.ok

    async def kill(self, pid: int, force: bool = False, graceful_timeout_ms: Optional[int] = None) -> bool:
        if graceful_timeout_ms is None:
            graceful_timeout_ms = self._settings.graceful_timeout_ms
        return await escalate_kill(
            self,
            pid,
            force=force,
            graceful_timeout_ms=graceful_timeout_ms,
            force_timeout_ms=self._settings.force_timeout_ms,
            poll_interval_ms=self._settings.process_poll_interval_ms,
            log=logger,
        )


__all__ = [
    "LsofRow",
    "UnixProcessTerminator",
    "find_with_lsof",
    "get_process_command",
    "get_process_user",
    "local_endpoint",
    "parse_lsof_output",
]
