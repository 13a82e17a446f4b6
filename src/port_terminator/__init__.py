"""Find and terminate the processes holding network ports on Windows, macOS and Linux."""

__version__ = "1.0.0"

from .api import (
    PortTerminator,
    get_process_on_port,
    get_processes_on_port,
    is_port_available,
    kill_port,
    kill_ports,
    wait_for_port,
)
from .errors import (
    CommandNonZeroExitError,
    CommandSpawnError,
    CommandTimeoutError,
    InvalidPidError,
    InvalidPortError,
    InvalidProtocolError,
    PermissionDeniedError,
    PortTerminatorError,
    PortWaitTimeoutError,
    ProcessKillError,
    UnresolvableOwnerError,
    UnsupportedPlatformError,
)
from .finder import ProcessFinder
from .killer import ProcessKiller
from .models import PortRangeScan, PortScanResult, ProcessRecord, TerminationResult
from .platform_selection import Platform, create_backend, current_platform, is_linux, is_macos, is_windows
from .scanner import PortScanner
from .validators import parse_port_range, validate_port, validate_ports

__all__ = [
    "CommandNonZeroExitError",
    "CommandSpawnError",
    "CommandTimeoutError",
    "InvalidPidError",
    "InvalidPortError",
    "InvalidProtocolError",
    "PermissionDeniedError",
    "Platform",
    "PortRangeScan",
    "PortScanResult",
    "PortScanner",
    "PortTerminator",
    "PortTerminatorError",
    "PortWaitTimeoutError",
    "ProcessFinder",
    "ProcessKillError",
    "ProcessKiller",
    "ProcessRecord",
    "TerminationResult",
    "UnresolvableOwnerError",
    "UnsupportedPlatformError",
    "__version__",
    "create_backend",
    "current_platform",
    "get_process_on_port",
    "get_processes_on_port",
    "is_linux",
    "is_macos",
    "is_port_available",
    "is_windows",
    "kill_port",
    "kill_ports",
    "parse_port_range",
    "validate_port",
    "validate_ports",
    "wait_for_port",
]
