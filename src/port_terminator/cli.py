"""
``port-terminator`` / ``pt`` entry point.

Exit status is 0 when every requested port ends up free and 1 otherwise,
including argument errors and runtime failures.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import List, Optional, Sequence

from . import __version__
from .api import DEFAULT_TIMEOUT_MS, PortTerminator
from .cli_helpers import (
    CliOptions,
    CliResult,
    CliUsageError,
    PortListing,
    dry_run_result,
    parse_cli_args,
    render_json,
    termination_result,
)
from .config import ConfigurationError, default_protocol
from .errors import PortTerminatorError
from .logging_config import setup_logging
from .platform_selection import PlatformBackend

logger = logging.getLogger(__name__)

NO_PORTS_MESSAGE = "No ports specified. Use --help for usage information."


def _build_terminator(options: CliOptions, backend: Optional[PlatformBackend]) -> PortTerminator:
    return PortTerminator(
        method=options.method,
        timeout_ms=options.timeout_ms,
        force=options.force,
        silent=options.silent,
        graceful_timeout_ms=options.graceful_timeout_ms,
        backend=backend,
    )


async def _dry_run(options: CliOptions, backend: Optional[PlatformBackend]) -> CliResult:
    terminator = _build_terminator(options, backend)
    listings: List[PortListing] = []
    for port in options.ports:
        try:
            processes = await terminator.get_processes(port)
        except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Lookup on port %s failed: %s", port, exc)
            listings.append(PortListing(port=port, processes=[], error=str(exc)))
            continue
        listings.append(PortListing(port=port, processes=processes))
    return dry_run_result(listings, as_json=options.json)


async def _terminate(options: CliOptions, backend: Optional[PlatformBackend]) -> CliResult:
    terminator = _build_terminator(options, backend)
    results = await terminator.terminate_with_details(options.ports)
    return termination_result(results, as_json=options.json, silent=options.silent)


async def execute(options: CliOptions, backend: Optional[PlatformBackend] = None) -> CliResult:
    """Run the dry run or the termination, bounded by the --timeout deadline."""
    deadline_ms = DEFAULT_TIMEOUT_MS if options.timeout_ms is None else options.timeout_ms
    try:
        return await asyncio.wait_for(_execute(options, backend), deadline_ms / 1000)
    except asyncio.TimeoutError:
        return CliResult(success=False, message=f"Error: Operation timed out after {deadline_ms}ms")


async def _execute(options: CliOptions, backend: Optional[PlatformBackend]) -> CliResult:
    if not options.ports:
        return CliResult(success=False, message=NO_PORTS_MESSAGE)
    if options.dry_run:
        return await _dry_run(options, backend)
    return await _terminate(options, backend)


def _emit(result: CliResult, options: CliOptions) -> None:
    if options.json:
        print(render_json(result))
    elif result.message:
        if result.success:
            if not options.silent:
                print(result.message)
        else:
            print(result.message, file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None, *, backend: Optional[PlatformBackend] = None) -> int:
    try:
        options = parse_cli_args(argv, default_method=default_protocol(), version=__version__)
    except SystemExit as exc:
        # --help and --version
        return int(exc.code or 0)
    except (CliUsageError, ConfigurationError, PortTerminatorError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    setup_logging(verbose=options.verbose, silent=options.silent)
    try:
        result = asyncio.run(execute(options, backend))
    except PortTerminatorError as exc:
        result = CliResult(success=False, message=f"{type(exc).__name__}: {exc}")
    except (ConfigurationError, ValueError) as exc:
        result = CliResult(success=False, message=f"Error: {exc}")

    _emit(result, options)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
