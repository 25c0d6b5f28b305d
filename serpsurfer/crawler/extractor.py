"""
Result link extraction.

Reads every anchor on the loaded results page in document order and keeps
outbound http(s) links. Document order is the ranking basis, so no
sorting or de-duplication happens here.
"""

from typing import List

from playwright.async_api import Page

from serpsurfer.core.logging import get_logger
from serpsurfer.crawler.engines import SearchEngineProfile
from serpsurfer.crawler.models import CandidateLink

logger = get_logger(__name__)


ANCHOR_SELECTOR = "a[href]"
# resolved absolute hrefs, in DOM order
ANCHOR_HREFS_JS = "els => els.map(a => a.href || '')"


def is_outbound_http(href: str) -> bool:
    lower = href.lower()
    return lower.startswith("http://") or lower.startswith("https://")


def filter_candidates(hrefs: List[str], profile: SearchEngineProfile) -> List[CandidateLink]:
    """
    Keep outbound http(s) links that are not engine-internal.

    Args:
        hrefs: Raw hrefs in DOM order
        profile: Engine profile supplying the internal-link markers

    Returns:
        Candidate links in the same order

    Example:
        >>> from serpsurfer.crawler.engines import DUCKDUCKGO
        >>> [c.raw_href for c in filter_candidates(
        ...     ["https://duckduckgo.com/about", "https://example.com/", "/relative"],
        ...     DUCKDUCKGO,
        ... )]
        ['https://example.com/']
    """
    out: List[CandidateLink] = []
    for href in hrefs:
        if not href or not isinstance(href, str):
            continue
        href = href.strip()
        if not is_outbound_http(href):
            continue
        if profile.is_internal_link(href):
            continue
        out.append(CandidateLink.from_href(href))
    return out


async def extract_candidates(page: Page, profile: SearchEngineProfile) -> List[CandidateLink]:
    """
    Extract candidate result links from the current results page.

    A DOM read failure (detached frame, navigation in flight) is a soft
    failure: the page simply has zero candidates.

    Args:
        page: Playwright page showing a results page
        profile: Engine profile for internal-link filtering

    Returns:
        Ordered candidate links (possibly empty)
    """
    try:
        hrefs = await page.eval_on_selector_all(ANCHOR_SELECTOR, ANCHOR_HREFS_JS)
    except Exception as e:
        logger.warning(f"Link extraction failed, treating page as empty: {e}")
        return []

    candidates = filter_candidates(list(hrefs or []), profile)
    logger.debug(f"Extracted {len(candidates)} candidates from {len(hrefs or [])} anchors")
    return candidates
