"""Data models shared by resolvers, terminators and facades."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional, Tuple

from .errors import CommandNonZeroExitError

TransportProtocol = Literal["tcp", "udp"]
ProtocolFilter = Literal["tcp", "udp", "both"]

UNKNOWN_PROCESS_NAME = "Unknown"
UNKNOWN_PID = 0


@dataclass(frozen=True)
class ProcessRecord:
    """A process that owns a socket on a port.

    ``pid == 0`` means the port is occupied but its owner is unknown; such a
    record must never be handed to a terminator.
    """

    pid: int
    name: str
    port: int
    protocol: str
    command: Optional[str] = None
    user: Optional[str] = None

    @property
    def dedup_key(self) -> Tuple[int, int, str]:
        return (self.pid, self.port, self.protocol)

    @property
    def has_known_pid(self) -> bool:
        return self.pid > UNKNOWN_PID


@dataclass(frozen=True)
class CommandOutcome:
    """Captured result of one external command."""

    stdout: str
    stderr: str
    exit_code: int
    command: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def raise_for_status(self) -> "CommandOutcome":
        """Return self, or raise CommandNonZeroExitError when the command failed."""
        if self.exit_code != 0:
            raise CommandNonZeroExitError(self.command, self.exit_code, self.stderr)
        return self


@dataclass(frozen=True)
class PortScanResult:
    port: int
    available: bool
    processes: List[ProcessRecord] = field(default_factory=list)
    error: Optional[str] = None


@dataclass(frozen=True)
class PortRangeScan:
    range: str
    available_ports: List[int]
    busy_ports: Dict[int, List[ProcessRecord]]


@dataclass(frozen=True)
class TerminationResult:
    port: int
    success: bool
    processes: List[ProcessRecord] = field(default_factory=list)
    error: Optional[str] = None


def deduplicate_records(records: Iterable[ProcessRecord]) -> List[ProcessRecord]:
    """Collapse records sharing ``(pid, port, protocol)``, keeping the first occurrence."""
    seen: set[Tuple[int, int, str]] = set()
    unique: List[ProcessRecord] = []
    for record in records:
        if record.dedup_key in seen:
            continue
        seen.add(record.dedup_key)
        unique.append(record)
    return unique


__all__ = [
    "CommandOutcome",
    "PortRangeScan",
    "PortScanResult",
    "ProcessRecord",
    "ProtocolFilter",
    "TerminationResult",
    "TransportProtocol",
    "UNKNOWN_PID",
    "UNKNOWN_PROCESS_NAME",
    "deduplicate_records",
]
