"""Exception hierarchy for port discovery and process termination.

Every error raised by the resolvers, terminators and facades inherits from
:class:`PortTerminatorError`, which carries a stable ``code`` plus the port or
PID involved when one is known.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class PortTerminatorError(Exception):
    """Base exception for all port terminator errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    code = "PORT_TERMINATOR_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        port: Optional[int] = None,
        pid: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        if not message:
            message = self.__class__.__doc__ or "Port terminator error occurred"
        super().__init__(message)
        self.port = port
        self.pid = pid
        for key, value in kwargs.items():
            setattr(self, key, value)


class _CommandError(PortTerminatorError):
    """External command failed."""

    def __init__(self, message: str, *, command: str, stderr: str = "", exit_code: int = 1, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.command = command
        self.stderr = stderr
        self.exit_code = exit_code


class CommandSpawnError(_CommandError):
    """Program could not be launched."""

    code = "COMMAND_SPAWN_FAILED"

    @classmethod
    def from_os_error(cls, command: str, exc: OSError) -> "CommandSpawnError":
        """Create error for an OS-level launch failure."""
        reason = exc.strerror or str(exc)
        return cls(f"Failed to launch command: {command} ({reason})", command=command, stderr=reason)


class CommandTimeoutError(_CommandError):
    """Program did not finish before its deadline."""

    code = "COMMAND_TIMEOUT"

    def __init__(self, command: str, timeout_ms: int) -> None:
        super().__init__(
            f"Command timed out after {timeout_ms}ms: {command}",
            command=command,
            stderr=f"Command timed out after {timeout_ms}ms",
        )
        self.timeout_ms = timeout_ms


class CommandNonZeroExitError(_CommandError):
    """Program ran but reported failure."""

    code = "COMMAND_EXECUTION_FAILED"

    def __init__(self, command: str, exit_code: int, stderr: str) -> None:
        super().__init__(
            f"Command execution failed: {command} (exit code: {exit_code})",
            command=command,
            stderr=stderr,
            exit_code=exit_code,
        )


class PermissionDeniedError(PortTerminatorError):
    """Termination was refused for lack of privilege."""

    code = "PERMISSION_DENIED"

    @classmethod
    def for_pid(cls, pid: int) -> "PermissionDeniedError":
        return cls(f"Permission denied when trying to kill process {pid}", pid=pid)


class ProcessKillError(PortTerminatorError):
    """Termination failed for an unclassified reason."""

    code = "PROCESS_KILL_FAILED"

    @classmethod
    def for_pid(cls, pid: int, signal: str = "", detail: str = "") -> "ProcessKillError":
        msg = f"Failed to kill process {pid}"
        if signal:
            msg += f" with signal {signal}"
        if detail:
            msg += f": {detail}"
        return cls(msg, pid=pid, signal=signal)


class UnresolvableOwnerError(PortTerminatorError):
    """Port is occupied but the owning PID cannot be determined."""

    code = "OWNER_UNRESOLVABLE"

    @classmethod
    def for_port(cls, port: int, tool: str) -> "UnresolvableOwnerError":
        return cls(
            f"Port {port} is in use but the owning process could not be determined via {tool}",
            port=port,
            tool=tool,
        )


class UnsupportedPlatformError(PortTerminatorError):
    """Host operating system is not supported."""

    code = "PLATFORM_UNSUPPORTED"

    def __init__(self, platform: str, message: str = "") -> None:
        super().__init__(message or f"Unsupported platform: {platform}")
        self.platform = platform


class InvalidPortError(PortTerminatorError):
    """Port is not an integer between 1 and 65535."""

    code = "INVALID_PORT"

    def __init__(self, port: Any) -> None:
        super().__init__(
            f"Invalid port number: {port}. Port must be between 1 and 65535",
            port=port if isinstance(port, int) and not isinstance(port, bool) else None,
        )
        self.value = port


class InvalidProtocolError(PortTerminatorError):
    """Protocol is not one of tcp, udp or both."""

    code = "INVALID_PROTOCOL"

    def __init__(self, protocol: Any, allowed: Sequence[str] = ("tcp", "udp", "both")) -> None:
        quoted = ", ".join(f"'{item}'" for item in allowed)
        super().__init__(f"Invalid protocol: {protocol}. Must be one of {quoted}")
        self.value = protocol


class InvalidPidError(PortTerminatorError):
    """PID is not a positive integer."""

    code = "INVALID_PID"

    def __init__(self, pid: Any) -> None:
        super().__init__(f"Invalid PID: {pid}. Must be a positive integer.")
        self.value = pid


class PortWaitTimeoutError(PortTerminatorError):
    """Port did not reach the requested state in time."""

    code = "OPERATION_TIMEOUT"

    def __init__(self, operation: str, timeout_ms: int, *, port: Optional[int] = None) -> None:
        super().__init__(f"Operation '{operation}' timed out after {timeout_ms}ms", port=port)
        self.operation = operation
        self.timeout_ms = timeout_ms


__all__ = [
    "CommandNonZeroExitError",
    "CommandSpawnError",
    "CommandTimeoutError",
    "InvalidPidError",
    "InvalidPortError",
    "InvalidProtocolError",
    "PermissionDeniedError",
    "PortTerminatorError",
    "PortWaitTimeoutError",
    "ProcessKillError",
    "UnresolvableOwnerError",
    "UnsupportedPlatformError",
]
