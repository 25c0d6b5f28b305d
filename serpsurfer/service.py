"""
Entry points the web layer calls.

``enqueue_campaign`` is fire-and-forget, ``run_search_once`` is the
pre-flight probe telling the caller whether the target ranks right now,
and ``start_campaign`` ties the probe and the paced generator together.
"""

import asyncio
from functools import partial
from typing import Optional

from serpsurfer.core.config import Config, get_config
from serpsurfer.core.error_logger import get_error_logger
from serpsurfer.core.error_models import ErrorComponent, ErrorStage
from serpsurfer.core.logging import get_logger
from serpsurfer.crawler.browser import ContextFactory, default_context_factory
from serpsurfer.crawler.campaign import CampaignRunner
from serpsurfer.crawler.engines import get_profile
from serpsurfer.crawler.interaction import InteractionSimulator
from serpsurfer.crawler.models import SearchTask
from serpsurfer.crawler.search import SearchAndMatchEngine
from serpsurfer.crawler.timing import HumanTiming
from serpsurfer.crawler.url_utils import normalize_domain
from serpsurfer.db.storage import TrafficStore
from serpsurfer.scheduler.generator import TaskGenerator
from serpsurfer.scheduler.plans import Plan
from serpsurfer.scheduler.queue import TaskQueue

logger = get_logger(__name__)


class SurferService:
    """
    Wire the engine, runner, queue and generator around one store.

    Usage:
        >>> service = SurferService(store=InMemoryTrafficStore())
        >>> service.start()
        >>> ranked = await service.start_campaign(url, keyword, "US", user_id, PLANS["plan2"])
    """

    def __init__(
        self,
        store: TrafficStore,
        config: Optional[Config] = None,
        engine: Optional[SearchAndMatchEngine] = None,
        context_factory: Optional[ContextFactory] = None,
        queue: Optional[TaskQueue] = None,
        generator_sleeper=None,
        timing: Optional[HumanTiming] = None,
    ):
        self.config = config or get_config()
        self.store = store
        timing = timing or (engine.timing if engine else HumanTiming())
        self.engine = engine or SearchAndMatchEngine(
            profile=get_profile(self.config.search_engine),
            timing=timing,
            nav_timeout_ms=self.config.nav_timeout_ms,
            click_timeout_ms=self.config.click_timeout_ms,
            max_pages=self.config.max_result_pages,
        )
        self.context_factory = context_factory or default_context_factory(self.config)
        self.runner = CampaignRunner(
            store=store,
            engine=self.engine,
            simulator=InteractionSimulator(timing=self.engine.timing, nav_timeout_ms=self.config.nav_timeout_ms),
            context_factory=self.context_factory,
            nav_timeout_ms=self.config.nav_timeout_ms,
        )
        self.queue = queue or TaskQueue(idle_delay=self.config.queue_idle_delay)
        self.generator = TaskGenerator(
            self.queue,
            self.runner,
            dwell_time_ms=self.config.campaign_dwell_ms,
            sleeper=generator_sleeper,
        )

    # -------------------
    # Lifecycle
    # -------------------

    def start(self) -> None:
        """Start the queue worker."""
        self.queue.start()

    async def stop(self) -> None:
        await self.queue.stop()

    # -------------------
    # Operations
    # -------------------

    def enqueue_campaign(self, task: SearchTask) -> None:
        """Queue one campaign run; its outcome is only visible in the store and logs."""
        self.queue.enqueue(partial(self.runner.run, task))

    async def run_search_once(self, target_url: str, keyword: str, user_id: str, country: str) -> bool:
        """
        Probe whether ``target_url`` currently ranks for ``keyword``.

        A found rank is stored. Search failures count as not found;
        browser launch failures propagate.

        Returns:
            True if the target was found
        """
        async with self.context_factory() as context:
            page = await context.new_page()
            try:
                result = await self.engine.search(page, keyword, target_url)
            except Exception as e:
                logger.error(f"Probe for {target_url} / '{keyword}' failed: {e}")
                return False
            finally:
                try:
                    await page.close()
                except Exception as e:
                    logger.debug(f"closing probe tab failed: {e}")

        if result.found:
            self.store.store_rank(user_id, keyword, target_url, country, result.rank)
        return result.found

    async def start_campaign(
        self,
        target_url: str,
        keyword: str,
        country: str,
        user_id: str,
        plan: Plan,
    ) -> bool:
        """
        Probe the target, then start paced generation whatever the probe said.

        Returns:
            The probe result, for user-facing messaging
        """
        self.store.create_traffic_record(user_id, keyword, target_url, country)
        try:
            ranked = await self.run_search_once(target_url, keyword, user_id, country)
        except Exception as e:
            logger.error(f"Probe could not run for {target_url}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.CAMPAIGN,
                stage=ErrorStage.LAUNCH_BROWSER,
                domain=normalize_domain(target_url) or "unknown",
                url=target_url,
                user_id=user_id,
            )
            ranked = False

        if ranked:
            logger.info(f"{target_url} ranks for '{keyword}', starting {plan.name} campaign")
        else:
            logger.info(f"{target_url} not found for '{keyword}', starting {plan.name} campaign anyway")

        self.generator.spawn(target_url, keyword, country, user_id, plan.hits_per_day, plan.duration_days)
        return ranked

    async def wait_for_generators(self) -> None:
        """Wait for every background generator to finish (bounded plans only)."""
        pending = list(self.generator._background)
        if pending:
            await asyncio.gather(*pending)
