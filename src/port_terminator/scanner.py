"""Scan ports for owners and search for free ports."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from .errors import PortTerminatorError, UnresolvableOwnerError
from .finder import ProcessFinder
from .models import PortRangeScan, PortScanResult, ProcessRecord
from .validators import MAX_PORT

logger = logging.getLogger(__name__)


class PortScanner:
    def __init__(self, finder: Optional[ProcessFinder] = None) -> None:
        self._finder = finder or ProcessFinder()

    async def scan_port(self, port: int, protocol: Optional[str] = None) -> PortScanResult:
        processes = await self._finder.find_by_port(port, protocol)
        return PortScanResult(port=port, available=not processes, processes=processes)

    async def scan_ports(self, ports: Iterable[int], protocol: Optional[str] = None) -> Dict[int, PortScanResult]:
        """Scan concurrently; a port whose lookup fails is reported busy with the error attached."""
        port_list = list(ports)
        results = await asyncio.gather(*(self._scan_isolated(port, protocol) for port in port_list))
        return dict(zip(port_list, results))

    async def _scan_isolated(self, port: int, protocol: Optional[str]) -> PortScanResult:
        try:
            return await self.scan_port(port, protocol)
        except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Failed to scan port %s: %s", port, exc)
            return PortScanResult(port=port, available=False, error=str(exc))

    async def scan_port_range(self, start: int, end: int, protocol: Optional[str] = None) -> PortRangeScan:
        results = await self.scan_ports(range(start, end + 1), protocol)
        available: List[int] = []
        busy: Dict[int, List[ProcessRecord]] = {}
        for port in sorted(results):
            result = results[port]
            if result.available:
                available.append(port)
            else:
                busy[port] = result.processes
        return PortRangeScan(range=f"{start}-{end}", available_ports=available, busy_ports=busy)

    async def find_available_port(
        self,
        start_port: int = 3000,
        max_attempts: int = 100,
        protocol: Optional[str] = None,
    ) -> Optional[int]:
        """First free port at or above ``start_port``; never probes beyond 65535."""
        for port in range(start_port, min(start_port + max_attempts, MAX_PORT + 1)):
            if await self._is_free(port, protocol):
                return port
        return None

    async def find_available_ports(
        self,
        count: int,
        start_port: int = 3000,
        max_attempts: int = 1000,
        protocol: Optional[str] = None,
    ) -> List[int]:
        """Up to ``count`` free ports, probing at most ``max_attempts`` ports."""
        available: List[int] = []
        for port in range(start_port, min(start_port + max_attempts, MAX_PORT + 1)):
            if len(available) >= count:
                break
            if await self._is_free(port, protocol):
                available.append(port)
        return available

    async def _is_free(self, port: int, protocol: Optional[str]) -> bool:
        try:
            return await self._finder.is_port_available(port, protocol)
        except UnresolvableOwnerError:
            return False


__all__ = ["PortScanner"]
