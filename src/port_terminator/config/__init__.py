"""Environment-backed configuration helpers and settings."""

from .errors import ConfigurationError
from .runtime import env_int, env_milliseconds, env_str, reset_default_values
from .settings import TerminatorSettings, default_protocol, get_settings, require_env_ms

__all__ = [
    "ConfigurationError",
    "TerminatorSettings",
    "default_protocol",
    "env_int",
    "env_milliseconds",
    "env_str",
    "get_settings",
    "require_env_ms",
    "reset_default_values",
]
