"""Windows strategy: ``netstat -ano`` for discovery, ``taskkill`` for termination."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from ..command_runner import CommandExecutor
from ..config import TerminatorSettings
from ..errors import CommandSpawnError, CommandTimeoutError, PortTerminatorError, ProcessKillError
from ..models import UNKNOWN_PROCESS_NAME, ProcessRecord, deduplicate_records
from .base import SignalDelivery, transport_of
from .escalation import classify_kill_failure, escalate_kill

logger = logging.getLogger(__name__)

_PORT_SUFFIX = re.compile(r":(\d+)$")
_LISTENING_STATE = "LISTENING"
_COMMAND_LINE_PREFIX = "CommandLine="

_PERMISSION_MARKERS = ("Access is denied",)
_GONE_MARKERS = ("not found", "not running")


@dataclass(frozen=True)
class NetstatEntry:
    protocol: str
    port: int
    pid: int


def parse_netstat_ano(stdout: str, port: int, protocol: str) -> List[NetstatEntry]:
    """
    Parse ``netstat -ano`` output.

    TCP rows read ``proto local foreign state pid`` and count only when
    LISTENING; UDP rows have no state and read ``proto local foreign pid``.
    """
    entries: List[NetstatEntry] = []
    wanted_prefix = protocol.upper()
    for line in stdout.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("Active") or trimmed.startswith("Proto"):
            continue
        parts = trimmed.split()
        proto = parts[0]
        transport = transport_of(proto)
        if transport is None:
            continue
        if protocol != "both" and not proto.upper().startswith(wanted_prefix):
            continue

        if transport == "udp" and len(parts) == 4:
            local_address, state, pid_text = parts[1], "", parts[3]
        elif len(parts) >= 5:
            local_address, state, pid_text = parts[1], parts[3], parts[4]
        else:
            continue

        match = _PORT_SUFFIX.search(local_address)
        if not match or int(match.group(1)) != port:
            continue
        if transport == "tcp" and state != _LISTENING_STATE:
            continue
        try:
            pid = int(pid_text)
        except ValueError:
            continue
        entries.append(NetstatEntry(transport, port, pid))
    return entries


def parse_tasklist_csv(stdout: str) -> List[List[str]]:
    """Rows of ``tasklist /FO CSV`` output; INFO banners and blank lines are dropped."""
    lines = [line for line in stdout.splitlines() if line.strip().startswith('"')]
    return [row for row in csv.reader(lines) if row]


def parse_command_line(stdout: str) -> Optional[str]:
    for line in stdout.splitlines():
        trimmed = line.strip()
        if trimmed.startswith(_COMMAND_LINE_PREFIX):
            return trimmed[len(_COMMAND_LINE_PREFIX) :] or None
    return None


class WindowsPortResolver:
    """Resolves port owners on Windows."""

    def __init__(self, runner: CommandExecutor) -> None:
        self._runner = runner

    async def find_processes_by_port(self, port: int, protocol: str = "both") -> List[ProcessRecord]:
        outcome = (await self._runner.run("netstat", ["-ano"])).raise_for_status()
        candidates = deduplicate_records(
            ProcessRecord(pid=entry.pid, name=UNKNOWN_PROCESS_NAME, port=entry.port, protocol=entry.protocol)
            for entry in parse_netstat_ano(outcome.stdout, port, protocol)
        )

        records: List[ProcessRecord] = []
        for candidate in candidates:
            try:
                name = await self._get_process_name(candidate.pid)
            except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
                logger.debug("Skipping PID %s on port %s: process listing failed: %s", candidate.pid, port, exc)
                continue
            command = await self._get_process_command(candidate.pid)
            records.append(
                ProcessRecord(
                    pid=candidate.pid,
                    name=name,
                    port=candidate.port,
                    protocol=candidate.protocol,
                    command=command,
                )
            )
        return records

    async def is_port_available(self, port: int, protocol: str = "both") -> bool:
        return not await self.find_processes_by_port(port, protocol)

    async def _get_process_name(self, pid: int) -> str:
        """Image name from tasklist; raises when the listing itself fails."""
        outcome = (await self._runner.run("tasklist", ["/FI", f"PID eq {pid}", "/FO", "CSV", "/NH"])).raise_for_status()
        rows = parse_tasklist_csv(outcome.stdout)
        if rows and rows[0][0]:
            return rows[0][0]
        return UNKNOWN_PROCESS_NAME

    async def _get_process_command(self, pid: int) -> Optional[str]:
        try:
            outcome = await self._runner.run(
                "wmic",
                ["process", "where", f"ProcessId={pid}", "get", "CommandLine", "/format:value"],
            )
        except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
            logger.debug("wmic lookup for %s failed: %s", pid, exc)
            return None
        if not outcome.ok:
            return None
        return parse_command_line(outcome.stdout)


class WindowsProcessTerminator:
    """Terminates processes with ``taskkill``."""

    def __init__(self, runner: CommandExecutor, settings: TerminatorSettings) -> None:
        self._runner = runner
        self._settings = settings

    async def _taskkill(self, pid: int, *, force: bool) -> SignalDelivery:
        args = ["/F", "/PID", str(pid)] if force else ["/PID", str(pid)]
        label = "taskkill /F" if force else "taskkill"
        try:
            outcome = await self._runner.run("taskkill", args)
        except (CommandSpawnError, CommandTimeoutError) as exc:
            raise ProcessKillError.for_pid(pid, label, str(exc)) from exc
        if outcome.ok:
            return SignalDelivery.SENT
        return classify_kill_failure(
            pid,
            outcome,
            signal=label,
            permission_markers=_PERMISSION_MARKERS,
            gone_markers=_GONE_MARKERS,
        )

    async def send_graceful(self, pid: int) -> SignalDelivery:
        return await self._taskkill(pid, force=False)

    async def send_forceful(self, pid: int) -> SignalDelivery:
        return await self._taskkill(pid, force=True)

    async def is_running(self, pid: int) -> bool:
        """True only when tasklist lists ``pid``; probe failures count as exited."""
        try:
            outcome = await self._runner.run("tasklist", ["/FI", f"PID eq {pid}", "/FO", "CSV"])
        except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Liveness probe for %s failed, assuming exited: %s", pid, exc)
            return False
        if not outcome.ok:
            return False
        return any(len(row) > 1 and row[1] == str(pid) for row in parse_tasklist_csv(outcome.stdout))

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
    "NetstatEntry",
    "WindowsPortResolver",
    "WindowsProcessTerminator",
    "parse_command_line",
    "parse_netstat_ano",
    "parse_tasklist_csv",
]
