"""
Human-like interaction with the target site.

Dwell, scroll to the bottom in small steps, then follow one random link.
Only a failure to open the target page counts as a failed interaction;
every later step is best-effort.
"""

from typing import Any, Callable, Dict, Optional

from playwright.async_api import Page

from serpsurfer.core.error_logger import get_error_logger
from serpsurfer.core.error_models import ErrorComponent, ErrorStage
from serpsurfer.core.logging import get_logger
from serpsurfer.crawler.extractor import ANCHOR_HREFS_JS, ANCHOR_SELECTOR, is_outbound_http
from serpsurfer.crawler.seo import extract_seo_metadata
from serpsurfer.crawler.timing import HumanTiming
from serpsurfer.crawler.url_utils import normalize_domain, on_target_domain

logger = get_logger(__name__)


SCROLL_HEIGHT_JS = "() => (document.body || document.documentElement).scrollHeight"
SCROLL_BY_JS = "(dy) => window.scrollBy(0, dy)"

SnapshotSink = Callable[[Dict[str, Any]], None]


class InteractionSimulator:
    """Timed dwell, scroll-to-bottom and one random link follow-through."""

    def __init__(
        self,
        timing: Optional[HumanTiming] = None,
        nav_timeout_ms: int = 60_000,
        scroll_step_px: int = 100,
        collect_seo: bool = True,
    ):
        self.timing = timing or HumanTiming()
        self.nav_timeout_ms = nav_timeout_ms
        self.scroll_step_px = scroll_step_px
        self.collect_seo = collect_seo

    async def simulate(
        self,
        page: Page,
        target_url: str,
        dwell_time_ms: int,
        on_snapshot: Optional[SnapshotSink] = None,
    ) -> bool:
        """
        Browse the target page like a visitor.

        Args:
            page: Tab showing (or about to show) the target site
            target_url: Campaign target
            dwell_time_ms: Time to stay before scrolling
            on_snapshot: Receives the SEO snapshot when one was collected

        Returns:
            False only if the target page could not be opened
        """
        if not on_target_domain(page.url, target_url):
            try:
                await page.goto(target_url, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
            except Exception as e:
                logger.error(f"Error opening target {target_url}: {e}")
                get_error_logger().log_exception(
                    e,
                    component=ErrorComponent.INTERACTION,
                    stage=ErrorStage.OPEN_TARGET,
                    domain=normalize_domain(target_url) or "unknown",
                    url=target_url,
                )
                return False

        if self.collect_seo:
            await self._collect_snapshot(page, on_snapshot)

        try:
            await self.timing.sleep_ms(dwell_time_ms)
        except Exception as e:
            logger.warning(f"dwell interrupted on {target_url}: {e}")

        try:
            steps = await self.scroll_to_bottom(page)
            logger.debug(f"scrolled {steps} steps on {page.url}")
        except Exception as e:
            logger.warning(f"scrolling failed on {target_url}: {e}")

        try:
            await self.follow_random_link(page, dwell_time_ms)
        except Exception as e:
            logger.warning(f"random link follow-through failed on {target_url}: {e}")

        return True

    async def _collect_snapshot(self, page: Page, on_snapshot: Optional[SnapshotSink]) -> None:
        snapshot = await extract_seo_metadata(page)
        if snapshot is None or on_snapshot is None:
            return
        try:
            on_snapshot(snapshot)
        except Exception as e:
            logger.warning(f"storing SEO snapshot failed: {e}")

    async def scroll_to_bottom(self, page: Page) -> int:
        """
        Scroll in fixed increments until the measured scroll height is reached.

        Returns:
            Number of scroll steps taken
        """
        height = int(await page.evaluate(SCROLL_HEIGHT_JS) or 0)
        scrolled = 0
        steps = 0
        while scrolled < height:
            await page.evaluate(SCROLL_BY_JS, self.scroll_step_px)
            scrolled += self.scroll_step_px
            steps += 1
            await self.timing.sleep_ms(self.timing.SCROLL_INTERVAL_MS)
        return steps

    async def follow_random_link(self, page: Page, dwell_time_ms: int) -> Optional[str]:
        """
        Open one http(s) link of the current document, picked uniformly.

        Returns:
            The followed URL, or None when the page had no usable link
        """
        hrefs = await page.eval_on_selector_all(ANCHOR_SELECTOR, ANCHOR_HREFS_JS)
        links = [h for h in hrefs or [] if isinstance(h, str) and is_outbound_http(h)]
        if not links:
            logger.debug(f"no links to follow on {page.url}")
            return None

        link = self.timing.choice(links)
        await page.goto(link, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
        await self.timing.sleep_ms(dwell_time_ms / 2)
        return link
