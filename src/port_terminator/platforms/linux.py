"""Linux port resolution: lsof first, ``netstat -tulpn`` when lsof is missing."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import List, Optional

from ..command_runner import CommandExecutor
from ..errors import CommandSpawnError, UnresolvableOwnerError
from ..models import UNKNOWN_PROCESS_NAME, ProcessRecord, deduplicate_records
from .base import transport_of
from .unix import find_with_lsof, get_process_command, get_process_user

logger = logging.getLogger(__name__)

_PORT_SUFFIX = re.compile(r":(\d+)$")
_PROGRAM_COLUMN = re.compile(r"^(\d+)/(.+)$")
_MIN_COLUMNS = 6
_FIRST_TRAILING_COLUMN = 5


@dataclass(frozen=True)
class NetstatRow:
    """One matching ``netstat -tulpn`` row; ``pid`` is None when hidden."""

    protocol: str
    port: int
    pid: Optional[int]
    name: str


def _is_program_token(token: str) -> bool:
    return token == "-" or bool(re.match(r"^\d+/", token))


def parse_netstat_output(stdout: str, port: int, protocol: str) -> List[NetstatRow]:
    """
    Parse ``netstat -tulpn`` output.

    TCP rows carry a state column before ``PID/Program name``; UDP rows usually
    do not. A program column of ``-`` means the PID is hidden from this user.
    """
    rows: List[NetstatRow] = []
    for line in stdout.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("Active") or trimmed.startswith("Proto"):
            continue
        parts = trimmed.split()
        if len(parts) < _MIN_COLUMNS:
            continue

        transport = transport_of(parts[0])
        if transport is None:
            continue
        if protocol != "both" and transport != protocol:
            continue

        match = _PORT_SUFFIX.search(parts[3])
        if not match or int(match.group(1)) != port:
            continue

        trailing = parts[_FIRST_TRAILING_COLUMN:]
        if trailing and not _is_program_token(trailing[0]):
            trailing = trailing[1:]
        program = " ".join(trailing)

        program_match = _PROGRAM_COLUMN.match(program)
        if program_match:
            rows.append(NetstatRow(transport, port, int(program_match.group(1)), program_match.group(2)))
        else:
            rows.append(NetstatRow(transport, port, None, UNKNOWN_PROCESS_NAME))
    return rows


class LinuxPortResolver:
    """Resolves port owners on Linux."""

    def __init__(self, runner: CommandExecutor) -> None:
        self._runner = runner

    async def find_processes_by_port(self, port: int, protocol: str = "both") -> List[ProcessRecord]:
        try:
            records = await find_with_lsof(self._runner, port, protocol)
        except CommandSpawnError as exc:
            logger.debug("lsof unavailable (%s); falling back to netstat", exc)
            records = await self._find_with_netstat(port, protocol)
        return deduplicate_records(records)

    async def is_port_available(self, port: int, protocol: str = "both") -> bool:
        return not await self.find_processes_by_port(port, protocol)

    async def _find_with_netstat(self, port: int, protocol: str) -> List[ProcessRecord]:
        args = ["-tulpn"]
        if protocol != "both":
            args.append(f"--{protocol}")
        outcome = (await self._runner.run("netstat", args)).raise_for_status()

        rows = parse_netstat_output(outcome.stdout, port, protocol)
        # One hidden owner makes the whole port unresolvable.
        if any(row.pid is None for row in rows):
            raise UnresolvableOwnerError.for_port(port, "netstat -tulpn")

        unique = deduplicate_records(
            ProcessRecord(pid=row.pid, name=row.name, port=row.port, protocol=row.protocol) for row in rows
        )
        records: List[ProcessRecord] = []
        for record in unique:
            command = await get_process_command(self._runner, record.pid)
            user = await get_process_user(self._runner, record.pid)
            records.append(replace(record, command=command, user=user))
        return records


__all__ = ["LinuxPortResolver", "NetstatRow", "parse_netstat_output"]
