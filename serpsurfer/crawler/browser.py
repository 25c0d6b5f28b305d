"""
Browser launch with a detection-resistant profile.

One Chromium instance and one context per campaign invocation; both are
closed when the context manager exits, whatever happened to the tabs.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional, AsyncContextManager

from playwright.async_api import BrowserContext, async_playwright

from serpsurfer.core.config import Config, get_config
from serpsurfer.core.logging import get_logger

logger = get_logger(__name__)


LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
]

HIDE_WEBDRIVER_JS = "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"


ContextFactory = Callable[[], AsyncContextManager[BrowserContext]]


def context_options(config: Config) -> Dict[str, object]:
    """Context kwargs: fixed viewport, desktop UA, English locale."""
    return {
        "user_agent": config.user_agent,
        "viewport": {"width": config.viewport_width, "height": config.viewport_height},
        "locale": "en-US",
        "java_script_enabled": True,
    }


@asynccontextmanager
async def stealth_context(config: Optional[Config] = None) -> AsyncIterator[BrowserContext]:
    """
    Launch Chromium and yield a context whose tabs hide automation markers.

    Example:
        >>> async with stealth_context() as context:
        ...     page = await context.new_page()
    """
    config = config or get_config()
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=config.headless,
            args=LAUNCH_ARGS,
            ignore_default_args=["--enable-automation"],
            timeout=config.nav_timeout_ms,
        )
        try:
            context = await browser.new_context(**context_options(config))
            await context.add_init_script(HIDE_WEBDRIVER_JS)
            try:
                yield context
            finally:
                try:
                    await context.close()
                except Exception as e:
                    logger.warning(f"closing browser context failed: {e}")
        finally:
            await browser.close()
            logger.debug("browser closed")


def default_context_factory(config: Optional[Config] = None) -> ContextFactory:
    """Bind ``stealth_context`` to a config for the runner and the probe."""
    return lambda: stealth_context(config)
