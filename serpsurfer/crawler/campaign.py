"""
Campaign runner: N concurrent bots sharing one browser.

Each bot runs search -> match -> interact in its own tab behind its own
error boundary; a failing bot never takes its siblings down. The browser
is released when every bot has finished.
"""

import asyncio
from typing import List, Optional

from playwright.async_api import BrowserContext

from serpsurfer.core.error_logger import ErrorLogger, get_error_logger
from serpsurfer.core.error_models import ErrorComponent, ErrorStage
from serpsurfer.core.logging import get_logger
from serpsurfer.crawler.browser import ContextFactory, default_context_factory
from serpsurfer.crawler.errors import SearchError
from serpsurfer.crawler.interaction import InteractionSimulator
from serpsurfer.crawler.models import BotOutcome, SearchTask
from serpsurfer.crawler.search import SearchAndMatchEngine
from serpsurfer.crawler.seo import summarize_seo
from serpsurfer.crawler.url_utils import normalize_domain, on_target_domain
from serpsurfer.db.storage import TrafficStore

logger = get_logger(__name__)


class CampaignRunner:
    """
    Run one SearchTask with ``task.bot_count`` concurrent tabs.

    Usage:
        >>> runner = CampaignRunner(store=InMemoryTrafficStore())
        >>> outcomes = await runner.run(task)
    """

    def __init__(
        self,
        store: TrafficStore,
        engine: Optional[SearchAndMatchEngine] = None,
        simulator: Optional[InteractionSimulator] = None,
        context_factory: Optional[ContextFactory] = None,
        error_logger: Optional[ErrorLogger] = None,
        nav_timeout_ms: int = 60_000,
    ):
        self.store = store
        self.engine = engine or SearchAndMatchEngine()
        self.simulator = simulator or InteractionSimulator(timing=self.engine.timing)
        self.context_factory = context_factory or default_context_factory()
        self.nav_timeout_ms = nav_timeout_ms
        self._error_logger = error_logger

    @property
    def error_logger(self) -> ErrorLogger:
        return self._error_logger or get_error_logger()

    async def run(self, task: SearchTask) -> List[BotOutcome]:
        """
        Execute the task and report every bot's outcome to the store.

        Returns:
            One BotOutcome per bot, in bot order
        """
        logger.info(
            f"Campaign start: '{task.keyword}' -> {task.target_url} "
            f"({task.bot_count} bot(s), user {task.user_id})"
        )
        async with self.context_factory() as context:
            outcomes = await asyncio.gather(
                *(self._run_bot(context, task, i + 1) for i in range(task.bot_count))
            )
        summary = ", ".join(o.value for o in outcomes)
        logger.info(f"Campaign done: '{task.keyword}' -> {task.target_url}: {summary}")
        return list(outcomes)

    async def _run_bot(self, context: BrowserContext, task: SearchTask, bot: int) -> BotOutcome:
        page = None
        try:
            page = await context.new_page()
            result = await self.engine.search(page, task.keyword, task.target_url)

            if not result.found:
                self.store.store_rank(task.user_id, task.keyword, task.target_url, task.country, None)
                logger.info(f"bot {bot}: target not found")
                return BotOutcome.NOT_FOUND

            self.store.store_rank(task.user_id, task.keyword, task.target_url, task.country, result.rank)
            await self._ensure_on_target(page, task, bot)

            interacted = await self.simulator.simulate(
                page,
                task.target_url,
                task.dwell_time_ms,
                on_snapshot=lambda snapshot: self._store_snapshot(task, snapshot),
            )
            self.store.increment_hits(task.user_id, task.keyword, task.target_url, task.country, 1)

            if interacted:
                logger.info(f"bot {bot}: interacted with {task.target_url} (rank {result.rank})")
                return BotOutcome.INTERACTED
            logger.warning(f"bot {bot}: matched at rank {result.rank} but interaction failed")
            return BotOutcome.INTERACTION_FAILED

        except SearchError as e:
            logger.error(f"bot {bot}: search aborted: {e}")
            self._log_bot_error(e, task, bot)
            return BotOutcome.NOT_FOUND
        except Exception as e:
            logger.error(f"Error in bot {bot}: {e}")
            self._log_bot_error(e, task, bot)
            return BotOutcome.ERROR
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.debug(f"bot {bot}: closing tab failed: {e}")

    async def _ensure_on_target(self, page, task: SearchTask, bot: int) -> None:
        if on_target_domain(page.url, task.target_url):
            return
        logger.info(f"bot {bot}: click-through landed on {page.url}, opening target directly")
        try:
            await page.goto(task.target_url, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
        except Exception as e:
            logger.warning(f"bot {bot}: direct navigation to {task.target_url} failed: {e}")

    def _store_snapshot(self, task: SearchTask, snapshot) -> None:
        self.store.store_metadata(task.user_id, task.keyword, task.target_url, snapshot)
        self.store.update_seo_summary(
            task.user_id, task.keyword, task.target_url, task.country, summarize_seo(snapshot)
        )

    def _log_bot_error(self, exc: Exception, task: SearchTask, bot: int) -> None:
        self.error_logger.log_exception(
            exc,
            component=ErrorComponent.CAMPAIGN,
            stage=ErrorStage.RUN_BOT,
            domain=normalize_domain(task.target_url),
            url=task.target_url,
            user_id=task.user_id,
            metadata={"keyword": task.keyword, "bot": bot},
        )
