"""Fixed-interval polling with an immediate first check and a deadline."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from .errors import PortTerminatorError

logger = logging.getLogger(__name__)

AsyncCheck = Callable[[], Awaitable[bool]]


async def _check_once(check: AsyncCheck, description: str) -> bool:
    try:
        return await check()
    except PortTerminatorError as exc:  # policy_guard: allow-silent-handler
        logger.debug("Check for %s failed, treating as not yet met: %s", description, exc)
        return False


async def poll_until(
    check: AsyncCheck,
    *,
    timeout_ms: int,
    interval_ms: int,
    description: str = "condition",
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """
    Await ``check`` until it returns True or ``timeout_ms`` elapses.

    The first check runs immediately. With ``timeout_ms == 0`` that single check
    decides the result. Errors raised by a check count as "not yet met".

    Args:
        check: Zero-argument coroutine function returning whether the condition holds
        timeout_ms: Deadline measured from the call
        interval_ms: Sleep between checks
        description: Label used in debug logs
        clock: Monotonic clock in seconds
        sleep: Coroutine used to wait between checks

    Returns:
        True if the condition was met before the deadline, False otherwise
    """
    started = clock()
    if await _check_once(check, description):
        return True
    if timeout_ms <= 0:
        return False

    interval_seconds = interval_ms / 1000
    while (clock() - started) * 1000 < timeout_ms:
        await sleep(interval_seconds)
        if await _check_once(check, description):
            return True

    logger.debug("Gave up waiting for %s after %sms", description, timeout_ms)
    return False


__all__ = ["AsyncCheck", "poll_until"]
