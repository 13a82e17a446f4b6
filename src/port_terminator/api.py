"""High-level API: terminate whatever holds a port, or wait for it to free up."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Union

from .errors import PortWaitTimeoutError
from .finder import ProcessFinder
from .killer import ProcessKiller
from .models import ProcessRecord, TerminationResult
from .platform_selection import PlatformBackend, create_backend
from .validators import normalize_protocol, validate_port, validate_ports, validate_timeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_GRACEFUL_TIMEOUT_MS = 5000


class PortTerminator:
    """
    Find and terminate the processes holding one or more ports.

    One finder and one killer are built over a shared platform backend, so a
    terminator issues its commands through a single runner.
    """

    def __init__(
        self,
        method: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        force: bool = False,
        silent: bool = False,
        graceful_timeout_ms: Optional[int] = None,
        *,
        log: Optional[logging.Logger] = None,
        backend: Optional[PlatformBackend] = None,
    ) -> None:
        self.method = normalize_protocol(method)
        self.timeout_ms = DEFAULT_TIMEOUT_MS if timeout_ms is None else validate_timeout(timeout_ms)
        self.force = force
        self.silent = silent
        self.graceful_timeout_ms = (
            DEFAULT_GRACEFUL_TIMEOUT_MS if graceful_timeout_ms is None else validate_timeout(graceful_timeout_ms)
        )
        self._logger = log or logger
        self._backend = backend or create_backend()
        self._finder = ProcessFinder(self._backend, log=self._logger)
        self._killer = ProcessKiller(self._backend, log=self._logger)

    def _info(self, message: str, *args: object) -> None:
        if not self.silent:
            self._logger.info(message, *args)

    async def terminate(self, port: Union[int, Iterable[int]]) -> bool:
        """Return True when every port ends up with no owners left."""
        ports = validate_ports([port] if isinstance(port, (int, str)) else port)
        self._info("Terminating processes on port%s: %s", "s" if len(ports) > 1 else "", ", ".join(map(str, ports)))
        results = await self.terminate_multiple(ports)
        return all(results.values())

    async def terminate_multiple(self, ports: Iterable[int]) -> Dict[int, bool]:
        """
        Terminate the owners of each port concurrently.

        A port with no owners counts as success. A port succeeds only when every
        owner found on it was killed; any error on a port maps to False.
        """
        port_list = validate_ports(ports)

        async def _terminate(port: int) -> bool:
            try:
                result = await self._terminate_port(port)
            except Exception as exc:  # policy_guard: allow-silent-handler
                self._logger.error("Error terminating processes on port %s: %s", port, exc)
                return False
            return result.success

        results = await asyncio.gather(*(_terminate(port) for port in port_list))
        return dict(zip(port_list, results))

    async def get_processes(self, port: int) -> List[ProcessRecord]:
        return await self._finder.find_by_port(validate_port(port), self.method)

    async def is_port_available(self, port: int) -> bool:
        return await self._finder.is_port_available(validate_port(port), self.method)

    async def wait_for_port(self, port: int, timeout_ms: Optional[int] = None) -> bool:
        """
        Wait for ``port`` to become available.

        Raises:
            PortWaitTimeoutError: If the port is still busy when ``timeout_ms``
                (the instance timeout by default) runs out
        """
        port = validate_port(port)
        deadline = self.timeout_ms if timeout_ms is None else validate_timeout(timeout_ms)
        self._logger.debug("Waiting for port %s to become available (timeout: %sms)", port, deadline)
        if not await self._finder.wait_for_port_to_be_available(port, deadline, self.method):
            raise PortWaitTimeoutError(f"wait_for_port({port})", deadline, port=port)
        return True

    async def terminate_with_details(self, ports: Iterable[int]) -> List[TerminationResult]:
        """Terminate port by port, recording killed processes and error text per port."""
        results: List[TerminationResult] = []
        for port in validate_ports(ports):
            try:
                results.append(await self._terminate_port(port))
            except Exception as exc:  # policy_guard: allow-silent-handler
                self._logger.debug("Termination on port %s failed: %s", port, exc)
                results.append(TerminationResult(port=port, success=False, processes=[], error=str(exc)))
        return results

    async def _terminate_port(self, port: int) -> TerminationResult:
        self._logger.debug("Finding processes on port %s", port)
        processes = await self._finder.find_by_port(port, self.method)
        if not processes:
            self._info("No processes found on port %s", port)
            return TerminationResult(port=port, success=True, processes=[])

        self._info("Found %s process(es) on port %s", len(processes), port)
        killed = await self._killer.kill_processes_by_port(port, self.force, self.graceful_timeout_ms, self.method)
        success = len(killed) == len(processes)
        if success:
            self._info("Successfully terminated %s process(es) on port %s", len(killed), port)
        else:
            self._logger.error("Failed to terminate some processes on port %s", port)
        return TerminationResult(port=port, success=success, processes=killed)


async def kill_port(port: int, **options) -> bool:
    return await PortTerminator(**options).terminate(port)


async def kill_ports(ports: Iterable[int], **options) -> Dict[int, bool]:
    return await PortTerminator(**options).terminate_multiple(ports)


async def get_process_on_port(port: int, **options) -> Optional[ProcessRecord]:
    """First process holding ``port``, or None when it is free."""
    processes = await PortTerminator(**options).get_processes(port)
    return processes[0] if processes else None


async def get_processes_on_port(port: int, **options) -> List[ProcessRecord]:
    return await PortTerminator(**options).get_processes(port)


async def is_port_available(port: int, **options) -> bool:
    return await PortTerminator(**options).is_port_available(port)


async def wait_for_port(port: int, timeout_ms: Optional[int] = None, **options) -> bool:
    return await PortTerminator(**options).wait_for_port(port, timeout_ms)


__all__ = [
    "DEFAULT_GRACEFUL_TIMEOUT_MS",
    "DEFAULT_TIMEOUT_MS",
    "PortTerminator",
    "get_process_on_port",
    "get_processes_on_port",
    "is_port_available",
    "kill_port",
    "kill_ports",
    "wait_for_port",
]
