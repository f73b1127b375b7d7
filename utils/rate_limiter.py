"""Cooperative delay between batches for throttled model tiers."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from config.constants import COUNTDOWN_TICK, SAFE_MODE_DELAY

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


async def cooperative_delay(
    duration: float,
    on_tick: Optional[Callable[[float], None]] = None,
    tick: float = COUNTDOWN_TICK,
    sleep: Sleep = asyncio.sleep,
):
    """
    Wait ``duration`` seconds in ``tick`` steps.

    ``on_tick`` receives the remaining seconds after each step while time
    is left, which drives a visible countdown.
    """
    remaining = duration
    while remaining > 1e-9:
        step = min(tick, remaining)
        await sleep(step)
        remaining -= step
        if on_tick and remaining > 1e-9:
            on_tick(remaining)


class RateLimiter:
    """Fixed pause between consecutive batches."""

    def __init__(
        self,
        delay: float = SAFE_MODE_DELAY,
        tick: float = COUNTDOWN_TICK,
        sleep: Sleep = asyncio.sleep,
    ):
        self.delay = delay
        self.tick = tick
        self._sleep = sleep
        self.waits = 0

    async def wait(self, on_tick: Optional[Callable[[float], None]] = None):
        self.waits += 1
        logger.debug(f"Waiting {self.delay:.1f}s before next request")
        await cooperative_delay(self.delay, on_tick=on_tick, tick=self.tick, sleep=self._sleep)
