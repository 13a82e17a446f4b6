"""Graceful-then-forceful termination shared by every platform."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..errors import PermissionDeniedError, PortTerminatorError, ProcessKillError
from ..models import CommandOutcome
from ..polling import poll_until
from ..validators import validate_pid
from .base import SignalDelivery, SignalSender

logger = logging.getLogger(__name__)


def classify_kill_failure(
    pid: int,
    outcome: CommandOutcome,
    *,
    signal: str,
    permission_markers: Sequence[str],
    gone_markers: Sequence[str],
) -> SignalDelivery:
    """
    Interpret a failed kill command.

    Returns:
        SignalDelivery.ALREADY_GONE when the process no longer exists

    Raises:
        PermissionDeniedError: If the tool reported a privilege problem
        ProcessKillError: For any other failure
    """
    detail = outcome.stderr.strip() or outcome.stdout.strip()
    if any(marker in detail for marker in permission_markers):
        raise PermissionDeniedError.for_pid(pid)
    if any(marker in detail for marker in gone_markers):
        return SignalDelivery.ALREADY_GONE
    raise ProcessKillError.for_pid(pid, signal, detail)


async def wait_for_exit(sender: SignalSender, pid: int, *, timeout_ms: int, interval_ms: int) -> bool:
    """Poll liveness until the process is gone; False if it outlives ``timeout_ms``."""

    async def _gone() -> bool:
        return not await sender.is_running(pid)

    return await poll_until(_gone, timeout_ms=timeout_ms, interval_ms=interval_ms, description=f"process {pid} to exit")


async def escalate_kill(
    sender: SignalSender,
    pid: int,
    *,
    force: bool,
    graceful_timeout_ms: int,
    force_timeout_ms: int,
    poll_interval_ms: int,
    log: Optional[logging.Logger] = None,
) -> bool:
    """
    Terminate ``pid``, escalating to the forceful signal only when needed.

    Args:
        sender: Platform primitives for signalling and probing
        pid: Target process; must be positive
        force: Skip the graceful stage
        graceful_timeout_ms: Time the process gets to exit after the graceful signal;
            zero skips the graceful stage
        force_timeout_ms: Time the process gets to exit after the forceful signal
        poll_interval_ms: Interval between liveness probes
        log: Logger for progress messages

    Returns:
        True if the process is gone, False if it survived the forceful signal

    Raises:
        InvalidPidError: If ``pid`` is not positive
        PermissionDeniedError: If the forceful signal was refused
        ProcessKillError: If the forceful signal failed for another reason
    """
    validate_pid(pid)
    log = log or logger

    if not force and graceful_timeout_ms > 0:
        try:
            delivery = await sender.send_graceful(pid)
        except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
            log.debug("Graceful termination of %s failed (%s); escalating", pid, exc)
        else:
            if delivery is SignalDelivery.ALREADY_GONE:
                log.debug("Process %s was already gone", pid)
                return True
            if await wait_for_exit(sender, pid, timeout_ms=graceful_timeout_ms, interval_ms=poll_interval_ms):
                log.debug("Process %s terminated gracefully", pid)
                return True
            log.info("Process %s did not terminate within %sms; forcing", pid, graceful_timeout_ms)

    delivery = await sender.send_forceful(pid)
    if delivery is SignalDelivery.ALREADY_GONE:
        return True

    if await wait_for_exit(sender, pid, timeout_ms=force_timeout_ms, interval_ms=poll_interval_ms):
        log.debug("Process %s force killed", pid)
        return True

    log.warning("Process %s still alive %sms after forceful termination", pid, force_timeout_ms)
    return False


__all__ = ["classify_kill_failure", "escalate_kill", "wait_for_exit"]
