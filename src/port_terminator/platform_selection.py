"""
Pick the resolver/terminator pair for the host operating system.

The host platform is detected once per interpreter and cached; every backend
built afterwards uses that value unless a caller passes a platform explicitly.
"""

from __future__ import annotations

import enum
import functools
import sys
from dataclasses import dataclass
from typing import Optional

from .command_runner import CommandExecutor, CommandRunner
from .config import TerminatorSettings, get_settings
from .errors import UnsupportedPlatformError
from .platforms import (
    LinuxPortResolver,
    MacOSPortResolver,
    PortProcessResolver,
    ProcessTerminator,
    UnixProcessTerminator,
    WindowsPortResolver,
    WindowsProcessTerminator,
)


class Platform(str, enum.Enum):
    WINDOWS = "win32"
    MACOS = "darwin"
    LINUX = "linux"

    @classmethod
    def from_identifier(cls, identifier: str) -> "Platform":
        """Map a ``sys.platform`` style identifier to a Platform."""
        if identifier == "win32":
            return cls.WINDOWS
        if identifier == "darwin":
            return cls.MACOS
        if identifier.startswith("linux"):
            return cls.LINUX
        raise UnsupportedPlatformError(identifier)


@functools.lru_cache(maxsize=1)
def current_platform() -> Platform:
    return Platform.from_identifier(sys.platform)


def is_windows() -> bool:
    return current_platform() is Platform.WINDOWS


def is_macos() -> bool:
    return current_platform() is Platform.MACOS


def is_linux() -> bool:
    return current_platform() is Platform.LINUX


@dataclass(frozen=True)
class PlatformBackend:
    """Resolver and terminator serving one platform."""

    platform: Platform
    resolver: PortProcessResolver
    terminator: ProcessTerminator
    settings: TerminatorSettings


def create_backend(
    platform: Optional[Platform] = None,
    *,
    runner: Optional[CommandExecutor] = None,
    settings: Optional[TerminatorSettings] = None,
) -> PlatformBackend:
    """
    Build the backend for ``platform`` (the host platform by default).

    Raises:
        UnsupportedPlatformError: If the host platform is not Windows, macOS or Linux
    """
    platform = platform or current_platform()
    settings = settings or get_settings()
    runner = runner or CommandRunner.from_settings(settings)

    if platform is Platform.WINDOWS:
        return PlatformBackend(platform, WindowsPortResolver(runner), WindowsProcessTerminator(runner, settings), settings)
    if platform is Platform.MACOS:
        return PlatformBackend(platform, MacOSPortResolver(runner), UnixProcessTerminator(runner, settings), settings)
    if platform is Platform.LINUX:
        return PlatformBackend(platform, LinuxPortResolver(runner), UnixProcessTerminator(runner, settings), settings)
    raise UnsupportedPlatformError(str(platform))


__all__ = [
    "Platform",
    "PlatformBackend",
    "create_backend",
    "current_platform",
    "is_linux",
    "is_macos",
    "is_windows",
]
