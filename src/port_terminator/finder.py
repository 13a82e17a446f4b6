"""Find which processes hold ports, and wait for ports to change state."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from .errors import UnresolvableOwnerError
from .models import ProcessRecord
from .platform_selection import PlatformBackend, create_backend
from .polling import poll_until
from .validators import normalize_protocol

logger = logging.getLogger(__name__)


class ProcessFinder:
    """Facade over the platform resolver.

    Single-port methods propagate resolver errors. ``find_by_ports`` isolates
    failures per port.
    """

    def __init__(self, backend: Optional[PlatformBackend] = None, *, log: Optional[logging.Logger] = None) -> None:
        self._backend = backend or create_backend()
        self._resolver = self._backend.resolver
        self._settings = self._backend.settings
        self._logger = log or logger

    @property
    def backend(self) -> PlatformBackend:
        return self._backend

    async def find_by_port(self, port: int, protocol: Optional[str] = None) -> List[ProcessRecord]:
        return await self._resolver.find_processes_by_port(port, normalize_protocol(protocol))

    async def find_by_ports(self, ports: Iterable[int], protocol: Optional[str] = None) -> Dict[int, List[ProcessRecord]]:
        """Resolve many ports concurrently; a port whose lookup fails maps to ``[]``."""
        port_list = list(ports)
        normalized = normalize_protocol(protocol)

        async def _find(port: int) -> List[ProcessRecord]:
            try:
                return await self._resolver.find_processes_by_port(port, normalized)
            except Exception as exc:  # policy_guard: allow-silent-handler
                self._logger.debug("Failed to find processes on port %s: %s", port, exc)
                return []

        results = await asyncio.gather(*(_find(port) for port in port_list))
        return dict(zip(port_list, results))

    async def is_port_available(self, port: int, protocol: Optional[str] = None) -> bool:
        return await self._resolver.is_port_available(port, normalize_protocol(protocol))

    async def wait_for_port_to_be_available(
        self,
        port: int,
        timeout_ms: Optional[int] = None,
        protocol: Optional[str] = None,
    ) -> bool:
        """
        Wait until nothing holds ``port``.

        Args:
            port: Port to watch
            timeout_ms: Deadline; zero means check once. Defaults to the configured wait timeout
            protocol: tcp, udp or both

        Returns:
            True once the port is free, False if it stayed busy until the deadline
        """
        normalized = normalize_protocol(protocol)

        async def _available() -> bool:
            return await self._resolver.is_port_available(port, normalized)

        return await poll_until(
            _available,
            timeout_ms=self._timeout(timeout_ms),
            interval_ms=self._settings.port_poll_interval_ms,
            description=f"port {port} to become available",
        )

    async def wait_for_port_to_be_busy(
        self,
        port: int,
        timeout_ms: Optional[int] = None,
        protocol: Optional[str] = None,
    ) -> bool:
        """Wait until something holds ``port``; mirrors :meth:`wait_for_port_to_be_available`."""
        normalized = normalize_protocol(protocol)

        async def _busy() -> bool:
            try:
                return not await self._resolver.is_port_available(port, normalized)
            except UnresolvableOwnerError:
                # occupied, owner unknown
                return True

        return await poll_until(
            _busy,
            timeout_ms=self._timeout(timeout_ms),
            interval_ms=self._settings.port_poll_interval_ms,
            description=f"port {port} to become busy",
        )

    def _timeout(self, timeout_ms: Optional[int]) -> int:
        return self._settings.wait_timeout_ms if timeout_ms is None else timeout_ms


__all__ = ["ProcessFinder"]
