"""
Timing configuration for command execution, termination and port polling.

All durations are in milliseconds. Each field resolves from the environment
(or a .env file) and falls back to the defaults below when unset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial

from .errors import ConfigurationError
from .runtime import env_milliseconds, env_str

_DEFAULT_MS_VALUES = {
    "PORT_TERMINATOR_COMMAND_TIMEOUT_MS": 30000,
    "PORT_TERMINATOR_COMMAND_KILL_GRACE_MS": 5000,
    "PORT_TERMINATOR_GRACEFUL_TIMEOUT_MS": 5000,
    "PORT_TERMINATOR_FORCE_TIMEOUT_MS": 2000,
    "PORT_TERMINATOR_PROCESS_POLL_INTERVAL_MS": 100,
    "PORT_TERMINATOR_PORT_POLL_INTERVAL_MS": 250,
    "PORT_TERMINATOR_WAIT_TIMEOUT_MS": 30000,
}

_PROTOCOL_ENV = "PORT_TERMINATOR_PROTOCOL"
_DEFAULT_PROTOCOL = "both"
_PROTOCOLS = ("tcp", "udp", "both")


def require_env_ms(name: str) -> int:
    """Get a millisecond duration from the environment, using the default if available."""
    value = env_milliseconds(name, or_value=None, required=False)
    if value is not None:
        return value
    if name in _DEFAULT_MS_VALUES:
        return _DEFAULT_MS_VALUES[name]
    raise ConfigurationError.missing_value(name)


def default_protocol() -> str:
    """Protocol used when the caller does not pick one."""
    value = (env_str(_PROTOCOL_ENV, or_value=_DEFAULT_PROTOCOL) or _DEFAULT_PROTOCOL).lower()
    if value not in _PROTOCOLS:
        raise ConfigurationError.invalid_format(_PROTOCOL_ENV, value, "one of tcp, udp, both")
    return value


@dataclass(frozen=True)
class TerminatorSettings:
    """
    Timeouts and polling intervals shared by the runner, terminators and facades.

    Attributes:
        command_timeout_ms: Deadline for a single external command
        command_kill_grace_ms: Wait between interrupting and force-killing a timed-out command
        graceful_timeout_ms: How long a process may take to exit after the graceful signal
        force_timeout_ms: How long a process may take to exit after the forceful signal
        process_poll_interval_ms: Interval between process liveness probes
        port_poll_interval_ms: Interval between port availability checks
        wait_timeout_ms: Default deadline for port waits
    """

    command_timeout_ms: int = field(default_factory=partial(require_env_ms, "PORT_TERMINATOR_COMMAND_TIMEOUT_MS"))
    command_kill_grace_ms: int = field(default_factory=partial(require_env_ms, "PORT_TERMINATOR_COMMAND_KILL_GRACE_MS"))

    graceful_timeout_ms: int = field(default_factory=partial(require_env_ms, "PORT_TERMINATOR_GRACEFUL_TIMEOUT_MS"))
    force_timeout_ms: int = field(default_factory=partial(require_env_ms, "PORT_TERMINATOR_FORCE_TIMEOUT_MS"))
    process_poll_interval_ms: int = field(default_factory=partial(require_env_ms, "PORT_TERMINATOR_PROCESS_POLL_INTERVAL_MS"))

    port_poll_interval_ms: int = field(default_factory=partial(require_env_ms, "PORT_TERMINATOR_PORT_POLL_INTERVAL_MS"))
    wait_timeout_ms: int = field(default_factory=partial(require_env_ms, "PORT_TERMINATOR_WAIT_TIMEOUT_MS"))

    def __post_init__(self) -> None:
        for name in ("process_poll_interval_ms", "port_poll_interval_ms"):
            if getattr(self, name) <= 0:
                raise ConfigurationError.invalid_value(name, getattr(self, name), "Polling interval must be positive")


def get_settings() -> TerminatorSettings:
    """Factory returning settings resolved from the current environment."""
    return TerminatorSettings()
