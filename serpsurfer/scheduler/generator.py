"""
Campaign task generator.

Spreads a daily hit quota evenly over the day: one task (single-bot unless
configured otherwise) is enqueued per hit, and the generator itself sleeps between enqueues. The
queue does no pacing of its own.
"""

import asyncio
import itertools
from functools import partial
from typing import Awaitable, Callable, Optional, Set

from serpsurfer.core.logging import get_logger
from serpsurfer.crawler.models import SearchTask
from serpsurfer.scheduler.queue import TaskQueue

logger = get_logger(__name__)


SECONDS_PER_DAY = 86_400


def pacing_delay(hits_per_day: int) -> int:
    """
    Seconds between two hits for an even daily spread.

    Example:
        >>> pacing_delay(2)
        43200
        >>> pacing_delay(3000)
        28
    """
    if hits_per_day < 1:
        raise ValueError(f"hits_per_day must be at least 1, got {hits_per_day}")
    return SECONDS_PER_DAY // hits_per_day


class TaskGenerator:
    """
    Produce paced campaign tasks into a TaskQueue.

    ``runner`` is anything with an async ``run(task)`` method, normally a
    CampaignRunner.
    """

    def __init__(
        self,
        queue: TaskQueue,
        runner,
        dwell_time_ms: int = 3000,
        bot_count: int = 1,
        sleeper: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.queue = queue
        self.runner = runner
        self.dwell_time_ms = dwell_time_ms
        self.bot_count = bot_count
        self._sleeper = sleeper or asyncio.sleep
        self._background: Set[asyncio.Task] = set()

    def make_task(self, target_url: str, keyword: str, country: str, user_id: str) -> SearchTask:
        return SearchTask(
            target_url=target_url,
            keyword=keyword,
            country=country,
            user_id=user_id,
            dwell_time_ms=self.dwell_time_ms,
            bot_count=self.bot_count,
        )

    async def generate(
        self,
        target_url: str,
        keyword: str,
        country: str,
        user_id: str,
        hits_per_day: int,
        duration_days: Optional[int],
    ) -> int:
        """
        Enqueue ``duration_days * hits_per_day`` tasks, sleeping between them.

        ``duration_days=None`` keeps generating until the process exits.

        Returns:
            Number of tasks enqueued
        """
        delay = pacing_delay(hits_per_day)
        if duration_days is not None and duration_days < 0:
            raise ValueError(f"duration_days must be non-negative, got {duration_days}")

        task = self.make_task(target_url, keyword, country, user_id)
        iterations = (
            itertools.count() if duration_days is None else range(duration_days * hits_per_day)
        )
        logger.info(
            f"Generating hits for {target_url} / '{keyword}': {hits_per_day}/day, "
            f"{'unbounded' if duration_days is None else f'{duration_days} day(s)'}, every {delay}s"
        )

        enqueued = 0
        for _ in iterations:
            self.queue.enqueue(partial(self.runner.run, task))
            enqueued += 1
            await self._sleeper(delay)

        logger.info(f"Generator finished for {target_url} / '{keyword}': {enqueued} task(s)")
        return enqueued

    def spawn(self, *args, **kwargs) -> asyncio.Task:
        """Run ``generate`` in the background, keeping a reference until it ends."""
        bg = asyncio.create_task(self.generate(*args, **kwargs))
        self._background.add(bg)
        bg.add_done_callback(self._background.discard)
        return bg
