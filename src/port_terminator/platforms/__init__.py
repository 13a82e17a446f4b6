"""Per-OS port resolution and process termination strategies."""

from .base import PortProcessResolver, ProcessTerminator, SignalDelivery, SignalSender
from .linux import LinuxPortResolver
from .macos import MacOSPortResolver
from .unix import UnixProcessTerminator
from .windows import WindowsPortResolver, WindowsProcessTerminator

__all__ = [
    "LinuxPortResolver",
    "MacOSPortResolver",
    "PortProcessResolver",
    "ProcessTerminator",
    "SignalDelivery",
    "SignalSender",
    "UnixProcessTerminator",
    "WindowsPortResolver",
    "WindowsProcessTerminator",
]
