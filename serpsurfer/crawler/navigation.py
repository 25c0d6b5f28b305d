"""
Page interaction primitives used by the search engine state machine.

Each helper wraps one Playwright call with the timeout and fallback
behaviour its caller expects; none of them decides what a failure means.
"""

from typing import Iterable, Optional, Sequence

from playwright.async_api import Page

from serpsurfer.core.logging import get_logger
from serpsurfer.crawler.engines import SelectorStep
from serpsurfer.crawler.timing import HumanTiming

logger = get_logger(__name__)


# Clicks the anchor whose resolved href equals the target. Result title
# links are preferred over any other anchor carrying the same href.
CLICK_ANCHOR_JS = r"""
({href, selectors}) => {
  const pick = (sel) => {
    try {
      return Array.from(document.querySelectorAll(sel)).find(a => a.href === href);
    } catch (e) {
      return undefined;
    }
  };
  let el = selectors && selectors.length ? pick(selectors.join(',')) : undefined;
  if (!el) el = pick('a[href]');
  if (!el) return false;
  el.click();
  return true;
}
"""


async def locate_first(page: Page, steps: Iterable[SelectorStep]) -> Optional[str]:
    """
    Return the first selector of a fallback chain that appears on the page.

    Each step waits up to its own timeout before the next is tried.

    Args:
        page: Playwright page instance
        steps: Ordered selector chain

    Returns:
        The matching selector, or None if every step timed out
    """
    for step in steps:
        try:
            await page.wait_for_selector(step.selector, timeout=step.timeout_ms)
            return step.selector
        except Exception:
            logger.debug(f"selector miss: {step.selector} ({step.timeout_ms}ms)")
            continue
    return None


async def type_like_human(page: Page, text: str, timing: HumanTiming) -> None:
    """Type ``text`` into the focused element one character at a time."""
    for ch in text:
        await page.keyboard.type(ch)
        await timing.keystroke()


async def clear_and_type(page: Page, selector: str, text: str, timing: HumanTiming) -> bool:
    """
    Replace the content of an input with ``text``, typed like a person.

    The field is read back once; on a mismatch it is emptied and retyped a
    single time. A second mismatch is accepted as-is.

    Args:
        page: Playwright page instance
        selector: Input selector
        text: Text to type
        timing: Timing policy for keystroke jitter

    Returns:
        True if the field held ``text`` after the first or second attempt
    """
    await page.focus(selector)
    await page.keyboard.press("Control+A")
    await page.keyboard.press("Delete")
    await timing.pause(timing.BEFORE_TYPING_MS)

    await type_like_human(page, text, timing)
    if await page.input_value(selector) == text:
        return True

    logger.info(f"Typed text mismatch in {selector}, retyping once")
    await page.fill(selector, "")
    await timing.sleep_ms(timing.RETYPE_PAUSE_MS)
    await page.focus(selector)
    await type_like_human(page, text, timing)

    typed = await page.input_value(selector)
    if typed != text:
        logger.warning(f"Search field still reads {typed!r} after retyping, continuing")
        return False
    return True


async def wait_for_url_change(page: Page, previous_url: str, timeout_ms: int) -> bool:
    """
    Best-effort wait for the tab to leave ``previous_url``.

    Client-rendered engines may update results without a navigation, so a
    timeout here is reported, not raised.

    Returns:
        True if the URL changed within the timeout
    """
    try:
        await page.wait_for_url(
            lambda url: url != previous_url,
            wait_until="domcontentloaded",
            timeout=timeout_ms,
        )
        return True
    except Exception as e:
        logger.debug(f"no navigation away from {previous_url} within {timeout_ms}ms: {e}")
        return False


async def click_anchor_by_href(page: Page, href: str, preferred_selectors: Sequence[str] = ()) -> bool:
    """
    DOM-click the anchor whose resolved href equals ``href``.

    Returns:
        True if an anchor was found and clicked
    """
    clicked = await page.evaluate(
        CLICK_ANCHOR_JS,
        {"href": href, "selectors": list(preferred_selectors)},
    )
    return bool(clicked)
