"""Bounded, cancellable polling."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class PollResult:
    """Outcome of a poll_until run."""

    success: bool
    checks: int
    waited: float
    cancelled: bool = False


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    *,
    interval: float,
    max_attempts: int,
    sleep: SleepFunc = asyncio.sleep,
    cancel_event: Optional[asyncio.Event] = None,
    label: str = "condition",
) -> PollResult:
    """Run check once, then retry up to max_attempts times.

    Each retry is preceded by sleep(interval), so the total wait is bounded
    by interval * max_attempts. Setting cancel_event stops the loop before
    the next check.

    Args:
        check: Async predicate; a truthy result ends polling
        interval: Seconds between checks
        max_attempts: Number of checks after the first one
        sleep: Sleep coroutine (injectable for tests)
        cancel_event: Optional event that aborts polling
        label: Description for logging

    Returns:
        PollResult with the number of checks made and seconds waited
    """
    waited = 0.0
    checks = 1
    if await check():
        return PollResult(success=True, checks=checks, waited=waited)

    for attempt in range(1, max_attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Polling for {label} cancelled")
            return PollResult(success=False, checks=checks, waited=waited, cancelled=True)

        await sleep(interval)
        waited += interval
        checks += 1
        if await check():
            return PollResult(success=True, checks=checks, waited=waited)
        logger.info(f"...still waiting for {label} ({attempt}/{max_attempts})")

    return PollResult(success=False, checks=checks, waited=waited)
