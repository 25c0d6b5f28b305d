"""
Human-like timing policy.

Every randomized pause the bots take goes through one object, so tests can
swap in a seeded RNG and a sleeper that records instead of waiting.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional


Sleeper = Callable[[float], Awaitable[None]]


class HumanTiming:
    """
    Randomized delays for typing, page settling and navigation.

    All public methods take or produce milliseconds; the sleeper receives
    seconds, like ``asyncio.sleep``.
    """

    KEYSTROKE_MS = (50, 200)
    BEFORE_TYPING_MS = (500, 1500)
    BEFORE_SUBMIT_MS = (1000, 2000)
    HOMEPAGE_SETTLE_MS = (3000, 5000)
    RESULTS_SETTLE_MS = (3000, 5000)
    EXTRACT_SETTLE_MS = (2000, 3000)
    BEFORE_NEXT_PAGE_MS = (1000, 3000)
    RETYPE_PAUSE_MS = 500
    CLICK_SETTLE_MS = 2000
    SCROLL_INTERVAL_MS = 100

    def __init__(self, rng: Optional[random.Random] = None, sleeper: Optional[Sleeper] = None):
        self.rng = rng or random.Random()
        self._sleeper = sleeper or asyncio.sleep

    async def sleep_ms(self, ms: float) -> None:
        await self._sleeper(max(ms, 0) / 1000.0)

    async def pause(self, bounds_ms) -> float:
        """Sleep a uniform random time within ``bounds_ms`` and return it."""
        lo, hi = bounds_ms
        ms = self.rng.uniform(lo, hi)
        await self.sleep_ms(ms)
        return ms

    async def keystroke(self) -> float:
        return await self.pause(self.KEYSTROKE_MS)

    def choice(self, items):
        return self.rng.choice(items)
