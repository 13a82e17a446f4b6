"""Contracts every platform strategy satisfies."""

from __future__ import annotations

import enum
from typing import List, Optional, Protocol

from ..models import ProcessRecord


class SignalDelivery(enum.Enum):
    """What happened when a termination command was issued."""

    SENT = "sent"
    ALREADY_GONE = "already_gone"


class PortProcessResolver(Protocol):
    """Maps a port to the processes that own it."""

    async def find_processes_by_port(self, port: int, protocol: str = "both") -> List[ProcessRecord]: ...

    async def is_port_available(self, port: int, protocol: str = "both") -> bool: ...


class SignalSender(Protocol):
    """Platform primitives used by the kill escalation."""

    async def send_graceful(self, pid: int) -> SignalDelivery: ...

    async def send_forceful(self, pid: int) -> SignalDelivery: ...

    async def is_running(self, pid: int) -> bool: ...


class ProcessTerminator(SignalSender, Protocol):
    """Kills a process, escalating from graceful to forceful."""

    async def kill(self, pid: int, force: bool = False, graceful_timeout_ms: Optional[int] = None) -> bool: ...


def protocols_for(protocol: str) -> List[str]:
    """Expand a protocol filter into the concrete transports to query."""
    if protocol == "both":
        return ["tcp", "udp"]
    return [protocol]


def transport_of(proto_column: str) -> Optional[str]:
    """Normalize a tool's proto column (``tcp6``, ``TCP``, ``udp4``) to ``tcp``/``udp``."""
    lowered = proto_column.lower()
    if lowered.startswith("tcp"):
        return "tcp"
    if lowered.startswith("udp"):
        return "udp"
    return None


__all__ = [
    "PortProcessResolver",
    "ProcessTerminator",
    "SignalDelivery",
    "SignalSender",
    "protocols_for",
    "transport_of",
]
