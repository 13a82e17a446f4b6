"""Text and JSON rendering of CLI results."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

import orjson

from ..models import ProcessRecord, TerminationResult


@dataclass(frozen=True)
class CliResult:
    success: bool
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class PortListing:
    port: int
    processes: List[ProcessRecord]
    error: Optional[str] = None


def _process_line(process: ProcessRecord) -> str:
    return f"  - PID {process.pid}: {process.name} ({process.protocol})"


def dry_run_result(listings: Sequence[PortListing], *, as_json: bool) -> CliResult:
    """Owners per port; a port whose lookup failed is listed with its error and fails the run."""
    total = sum(len(listing.processes) for listing in listings)
    success = not any(listing.error for listing in listings)
    if as_json:
        return CliResult(
            success=success,
            data={
                "dry_run": True,
                "ports": [asdict(listing) for listing in listings],
                "total_processes": total,
            },
        )

    lines = [f"Dry run: Would terminate {total} process(es) on {len(listings)} port(s)"]
    for listing in listings:
        if not listing.processes and not listing.error:
            continue
        lines.append("")
        lines.append(f"Port {listing.port}:")
        if listing.error:
            lines.append(f"  - Error: {listing.error}")
        for process in listing.processes:
            lines.append(_process_line(process))
            if process.command:
                lines.append(f"    Command: {process.command}")
    return CliResult(success=success, message="\n".join(lines))


def termination_result(results: Sequence[TerminationResult], *, as_json: bool, silent: bool) -> CliResult:
    succeeded = sum(1 for result in results if result.success)
    killed = sum(len(result.processes) for result in results)
    success = succeeded == len(results)

    if as_json:
        return CliResult(
            success=success,
            data={
                "results": [asdict(result) for result in results],
                "summary": {
                    "total_ports": len(results),
                    "successful_ports": succeeded,
                    "total_processes_killed": killed,
                },
            },
        )

    lines = [f"Successfully terminated {killed} process(es) on {succeeded}/{len(results)} port(s)"]
    failed = [result for result in results if not result.success]
    if failed:
        lines.extend(["", "Failed ports:"])
        lines.extend(f"  - Port {result.port}: {result.error or 'Unknown error'}" for result in failed)

    if not silent and killed:
        lines.extend(["", "Terminated processes:"])
        for result in results:
            if not result.processes:
                continue
            lines.extend(["", f"Port {result.port}:"])
            lines.extend(_process_line(process) for process in result.processes)
    return CliResult(success=success, message="\n".join(lines))


def render_json(result: CliResult) -> str:
    payload: Dict[str, Any] = {"success": result.success}
    if result.message is not None:
        payload["message"] = result.message
    if result.data is not None:
        payload["data"] = result.data
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS).decode()


__all__ = [
    "CliResult",
    "PortListing",
    "dry_run_result",
    "render_json",
    "termination_result",
]
