"""Helpers backing the ``port-terminator`` command line tool."""

from .arguments import CliOptions, CliUsageError, build_parser, parse_cli_args, resolve_ports
from .report import CliResult, PortListing, dry_run_result, render_json, termination_result

__all__ = [
    "CliOptions",
    "CliResult",
    "CliUsageError",
    "PortListing",
    "build_parser",
    "dry_run_result",
    "parse_cli_args",
    "render_json",
    "resolve_ports",
    "termination_result",
]
