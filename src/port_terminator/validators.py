"""Input validation for ports, ranges, timeouts, protocols and PIDs."""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Union

from .errors import InvalidPidError, InvalidPortError, InvalidProtocolError
from .models import ProtocolFilter

MIN_PORT = 1
MAX_PORT = 65535
DEFAULT_MAX_RANGE_SIZE = 1000

_PROTOCOLS = ("tcp", "udp", "both")


def validate_port(port: Union[int, str]) -> int:
    """Return ``port`` as an int in 1..65535 or raise InvalidPortError.

    Strings must hold a plain decimal integer; fractional values are rejected.
    """
    if isinstance(port, bool):
        raise InvalidPortError(port)

    if isinstance(port, str):
        text = port.strip()
        if not text or "." in text:
            raise InvalidPortError(port)
        try:
            value = int(text, 10)
        except ValueError as exc:
            raise InvalidPortError(port) from exc
    elif isinstance(port, int):
        value = port
    elif isinstance(port, float) and port.is_integer():
        value = int(port)
    else:
        raise InvalidPortError(port)

    if value < MIN_PORT or value > MAX_PORT:
        raise InvalidPortError(port)
    return value


def validate_ports(ports: Iterable[Union[int, str]]) -> List[int]:
    return [validate_port(port) for port in ports]


def validate_timeout(timeout_ms: Union[int, float]) -> int:
    """Return a non-negative, finite timeout in milliseconds."""
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)):
        raise ValueError(f"Invalid timeout: {timeout_ms}. Timeout must be a positive number")
    if not math.isfinite(timeout_ms) or timeout_ms < 0:
        raise ValueError(f"Invalid timeout: {timeout_ms}. Timeout must be a positive number")
    return int(timeout_ms)


def parse_port_range(port_range: str, max_range_size: int = DEFAULT_MAX_RANGE_SIZE) -> List[int]:
    """
    Expand ``"start-end"`` into the inclusive list of ports.

    Args:
        port_range: Range expression such as ``"3000-3005"``
        max_range_size: Largest number of ports the range may cover

    Returns:
        Ports from start to end inclusive

    Raises:
        InvalidPortError: If either bound is not a valid port
        ValueError: If the expression is malformed, reversed or too large
    """
    parts = port_range.split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid port range: {port_range}. Expected format: start-end")

    start = validate_port(parts[0].strip())
    end = validate_port(parts[1].strip())
    if start > end:
        raise ValueError(f"Invalid port range: {port_range}. Start port must be less than or equal to end port")

    range_size = end - start + 1
    if range_size > max_range_size:
        raise ValueError(f"Port range too large: {range_size} ports. Maximum allowed: {max_range_size}")

    return list(range(start, end + 1))


def is_valid_protocol(protocol: str) -> bool:
    return protocol.lower() in _PROTOCOLS


def normalize_protocol(protocol: Optional[str] = None) -> ProtocolFilter:
    """Lower-case ``protocol``; ``None`` means both tcp and udp."""
    if protocol is None:
        return "both"
    if not isinstance(protocol, str) or not is_valid_protocol(protocol):
        raise InvalidProtocolError(protocol)
    return protocol.lower()  # type: ignore[return-value]


def validate_pid(pid: int) -> int:
    if isinstance(pid, bool) or not isinstance(pid, int) or pid <= 0:
        raise InvalidPidError(pid)
    return pid


__all__ = [
    "DEFAULT_MAX_RANGE_SIZE",
    "MAX_PORT",
    "MIN_PORT",
    "is_valid_protocol",
    "normalize_protocol",
    "parse_port_range",
    "validate_pid",
    "validate_port",
    "validate_ports",
    "validate_timeout",
]
