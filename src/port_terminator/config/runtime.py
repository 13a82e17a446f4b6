from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import os
from pathlib import Path
from typing import Dict, Optional

from .errors import ConfigurationError

_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".env")
_KEY_PREFIX = "PORT_TERMINATOR_"

_DEFAULT_VALUES: dict[str, str] | None = None


def _read_dotenv(path: Path) -> Dict[str, str]:
    """``PORT_TERMINATOR_*`` assignments from one .env file; other keys are ignored."""
    if not path.is_file():
        return {}
    try:
        text = path.read_text()
    except OSError as exc:  # policy_guard: allow-silent-handler
        raise ConfigurationError(f"Failed to load configuration from {path}") from exc

    values: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, raw_value = line.strip().removeprefix("export ").partition("=")
        key = key.strip()
        if not sep or not key.startswith(_KEY_PREFIX):
            continue
        values[key] = raw_value.strip().strip("'").strip('"')
    return values


def _load_default_values() -> dict[str, str]:
    """Merge the .env candidates; earlier files win."""
    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is not None:
        return _DEFAULT_VALUES

    defaults: dict[str, str] = {}
    for path in _DOTENV_CANDIDATES:
        for key, value in _read_dotenv(path).items():
            defaults.setdefault(key, value)

    _DEFAULT_VALUES = defaults
    return defaults


def reset_default_values() -> None:
    """Forget cached .env values so the next lookup re-reads the files."""
    global _DEFAULT_VALUES
    _DEFAULT_VALUES = None


def _default_value(name: str) -> Optional[str]:
    return _load_default_values().get(name)


def _normalize(value: str | None, *, strip: bool) -> str | None:
    if value is None:
        return None
    return value.strip() if strip else value


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> str | None:
    """Fetch an environment variable as a string with validation."""

    value = _normalize(os.getenv(name), strip=strip)

    if value is None or (not allow_blank and value == ""):
        configured_default = _default_value(name)
        if configured_default is not None:
            value = _normalize(configured_default, strip=strip)

    if value is None or (not allow_blank and value == ""):
        if required:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return value


def env_int(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    """Fetch an environment variable and coerce it to ``int``."""

    raw = env_str(name, strip=True, allow_blank=False)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name!r} must be an integer (got {raw!r})") from exc


def env_milliseconds(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    """Convenience wrapper for fetching durations stored as milliseconds."""

    value = env_int(name, or_value=or_value, required=required)
    if value is None:
        return None
    if value < 0:
        raise ConfigurationError(f"Environment variable {name!r} must be non-negative (got {value})")
    return value
