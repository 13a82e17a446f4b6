"""Argument parsing for the ``port-terminator`` command."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..validators import parse_port_range, validate_ports, validate_timeout

USAGE_EXAMPLES = """\
examples:
  port-terminator 3000                  Kill process on port 3000
  port-terminator 3000 3001 3002        Kill processes on multiple ports
  port-terminator --range 3000-3005     Kill processes on port range
  port-terminator 3000 --force          Force kill without grace period
  port-terminator 3000 --dry-run        Preview what would be killed
  port-terminator 3000 --method tcp     Only kill TCP processes
  port-terminator 3000 --json           Output in JSON format
  pt 3000                               Short alias

exit codes:
  0    Success
  1    Error or failure
"""


class CliUsageError(Exception):
    """Command line arguments could not be parsed."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise CliUsageError(message)


def _timeout_arg(value: str) -> int:
    try:
        return validate_timeout(int(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid timeout: {value}. Timeout must be a positive number") from exc


@dataclass(frozen=True)
class CliOptions:
    ports: List[int]
    force: bool
    timeout_ms: Optional[int]
    graceful_timeout_ms: Optional[int]
    method: str
    dry_run: bool
    json: bool
    silent: bool
    verbose: bool


def build_parser(default_method: str, version: str) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="port-terminator",
        description="Cross-platform utility to terminate processes running on specified ports",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("ports", nargs="*", metavar="PORT", help="Port(s) whose processes should be terminated")
    parser.add_argument("-r", "--range", dest="port_range", metavar="START-END", help="Kill processes in port range (e.g., 3000-3005)")
    parser.add_argument("-f", "--force", action="store_true", help="Force kill without graceful timeout")
    parser.add_argument("-t", "--timeout", dest="timeout_ms", type=_timeout_arg, metavar="MS", help="Deadline for the whole run in milliseconds (default: 30000)")
    parser.add_argument(
        "-g",
        "--graceful-timeout",
        dest="graceful_timeout_ms",
        type=_timeout_arg,
        metavar="MS",
        help="Graceful shutdown timeout (default: 5000)",
    )
    parser.add_argument(
        "-m",
        "--method",
        type=str.lower,
        choices=("tcp", "udp", "both"),
        default=default_method,
        help=f"Protocol to target (default: {default_method})",
    )
    parser.add_argument("-n", "--dry-run", action="store_true", help="Show what would be killed without actually killing")
    parser.add_argument("-j", "--json", action="store_true", help="Output results in JSON format")
    parser.add_argument("-s", "--silent", action="store_true", help="Suppress all output except errors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    parser.add_argument("-V", "--version", action="version", version=f"port-terminator {version}")
    return parser


def resolve_ports(ports: Sequence[str], port_range: Optional[str]) -> List[int]:
    """Validated ports plus the expanded range, deduplicated and sorted."""
    resolved = validate_ports(ports)
    if port_range:
        resolved.extend(parse_port_range(port_range))
    return sorted(set(resolved))


def parse_cli_args(argv: Optional[Sequence[str]], *, default_method: str, version: str) -> CliOptions:
    """
    Parse ``argv`` into CliOptions.

    Raises:
        CliUsageError: If the arguments are malformed
        InvalidPortError: If a port or range bound is out of range
        ValueError: If the range expression is malformed
    """
    args = build_parser(default_method, version).parse_args(argv)
    return CliOptions(
        ports=resolve_ports(args.ports, args.port_range),
        force=args.force,
        timeout_ms=args.timeout_ms,
        graceful_timeout_ms=args.graceful_timeout_ms,
        method=args.method,
        dry_run=args.dry_run,
        json=args.json,
        silent=args.silent,
        verbose=args.verbose,
    )


__all__ = [
    "CliOptions",
    "CliUsageError",
    "build_parser",
    "parse_cli_args",
    "resolve_ports",
]
