"""macOS port resolution.

lsof is the only source of PIDs. When it is missing, ``netstat -an -p <proto>``
can still tell whether the port is taken, but not by whom, so an occupied
port raises :class:`UnresolvableOwnerError` instead of pretending to be free.
"""

from __future__ import annotations

import logging
import re
from typing import List

from ..command_runner import CommandExecutor
from ..errors import CommandSpawnError, UnresolvableOwnerError
from ..models import ProcessRecord, deduplicate_records
from .base import protocols_for, transport_of
from .unix import find_with_lsof

logger = logging.getLogger(__name__)

_DOTTED_PORT_SUFFIX = re.compile(r"\.(\d+)$")
_MIN_COLUMNS = 5
_STATE_COLUMN = 5
_LISTEN_STATE = "LISTEN"


def netstat_shows_port(stdout: str, port: int, protocol: str) -> bool:
    """
    True when ``netstat -an -p <protocol>`` output has a local socket on ``port``.

    Local addresses use dotted notation (``*.3000``, ``127.0.0.1.3000``,
    ``::1.3000``). TCP rows only count in the LISTEN state.
    """
    for line in stdout.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("Active") or trimmed.startswith("Proto"):
            continue
        parts = trimmed.split()
        if len(parts) < _MIN_COLUMNS:
            continue
        if transport_of(parts[0]) != protocol:
            continue
        match = _DOTTED_PORT_SUFFIX.search(parts[3])
        if not match or int(match.group(1)) != port:
            continue
        if protocol == "tcp":
            state = parts[_STATE_COLUMN] if len(parts) > _STATE_COLUMN else ""
            if state != _LISTEN_STATE:
                continue
        return True
    return False


class MacOSPortResolver:
    """Resolves port owners on macOS."""

    def __init__(self, runner: CommandExecutor) -> None:
        self._runner = runner

    async def find_processes_by_port(self, port: int, protocol: str = "both") -> List[ProcessRecord]:
        try:
            records = await find_with_lsof(self._runner, port, protocol)
        except CommandSpawnError as exc:
            logger.debug("lsof unavailable (%s); checking occupancy with netstat", exc)
            await self._check_with_netstat(port, protocol)
            return []
        return deduplicate_records(records)

    async def is_port_available(self, port: int, protocol: str = "both") -> bool:
        return not await self.find_processes_by_port(port, protocol)

    async def _check_with_netstat(self, port: int, protocol: str) -> None:
        """Raise UnresolvableOwnerError if netstat sees ``port`` in use under any requested protocol."""
        for proto in protocols_for(protocol):
            outcome = (await self._runner.run("netstat", ["-an", "-p", proto])).raise_for_status()
            if netstat_shows_port(outcome.stdout, port, proto):
                raise UnresolvableOwnerError.for_port(port, f"netstat -an -p {proto}")


__all__ = ["MacOSPortResolver", "netstat_shows_port"]
