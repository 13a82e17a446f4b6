"""Kill processes by PID or by the ports they hold."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from .models import ProcessRecord
from .platform_selection import PlatformBackend, create_backend
from .validators import normalize_protocol, validate_pid

logger = logging.getLogger(__name__)


class ProcessKiller:
    """
    Facade over the platform terminator.

    ``kill_process`` and ``kill_processes_by_port`` propagate errors;
    the batch methods turn a failing PID or port into ``False`` / ``[]``.
    """

    def __init__(self, backend: Optional[PlatformBackend] = None, *, log: Optional[logging.Logger] = None) -> None:
        self._backend = backend or create_backend()
        self._resolver = self._backend.resolver
        self._terminator = self._backend.terminator
        self._settings = self._backend.settings
        self._logger = log or logger

    async def kill_process(self, pid: int, force: bool = False, graceful_timeout_ms: Optional[int] = None) -> bool:
        """
        Terminate ``pid``, gracefully first unless ``force`` is set.

        Args:
            pid: Positive process id
            force: Skip the graceful stage
            graceful_timeout_ms: Time allowed for graceful exit; zero skips the graceful stage

        Returns:
            True if the process is gone

        Raises:
            InvalidPidError: If ``pid`` is not positive
            PermissionDeniedError: If termination was refused
            ProcessKillError: If termination failed for another reason
        """
        validate_pid(pid)
        if graceful_timeout_ms is None:
            graceful_timeout_ms = self._settings.graceful_timeout_ms
        return await self._terminator.kill(pid, force, graceful_timeout_ms)

    async def kill_processes(
        self,
        pids: Iterable[int],
        force: bool = False,
        graceful_timeout_ms: Optional[int] = None,
    ) -> Dict[int, bool]:
        """Kill many PIDs concurrently; a PID whose kill raises maps to False."""
        pid_list = list(pids)

        async def _kill(pid: int) -> bool:
            try:
                return await self.kill_process(pid, force, graceful_timeout_ms)
            except Exception as exc:  # policy_guard: allow-silent-handler
                self._logger.debug("Failed to kill process %s: %s", pid, exc)
                return False

        results = await asyncio.gather(*(_kill(pid) for pid in pid_list))
        return dict(zip(pid_list, results))

    async def kill_processes_by_port(
        self,
        port: int,
        force: bool = False,
        graceful_timeout_ms: Optional[int] = None,
        protocol: Optional[str] = None,
    ) -> List[ProcessRecord]:
        """
        Kill every process holding ``port``, one at a time.

        Returns:
            The records of processes confirmed killed; ``[]`` when the port is free

        Raises:
            PortTerminatorError: If the owners of ``port`` cannot be resolved
        """
        processes = await self._resolver.find_processes_by_port(port, normalize_protocol(protocol))
        if not processes:
            return []

        killed: List[ProcessRecord] = []
        for process in processes:
            if not process.has_known_pid:
                self._logger.warning("Skipping process on port %s with unknown PID", port)
                continue
            try:
                success = await self.kill_process(process.pid, force, graceful_timeout_ms)
            except Exception as exc:  # policy_guard: allow-silent-handler
                self._logger.debug("Failed to kill process %s (%s) on port %s: %s", process.pid, process.name, port, exc)
                continue
            if success:
                killed.append(process)
        return killed

    async def kill_processes_by_ports(
        self,
        ports: Iterable[int],
        force: bool = False,
        graceful_timeout_ms: Optional[int] = None,
        protocol: Optional[str] = None,
    ) -> Dict[int, List[ProcessRecord]]:
        port_list = list(ports)

        async def _kill_port(port: int) -> List[ProcessRecord]:
            try:
                return await self.kill_processes_by_port(port, force, graceful_timeout_ms, protocol)
            except Exception as exc:  # policy_guard: allow-silent-handler
                self._logger.debug("Failed to kill processes on port %s: %s", port, exc)
                return []

        results = await asyncio.gather(*(_kill_port(port) for port in port_list))
        return dict(zip(port_list, results))


__all__ = ["ProcessKiller"]
