"""
Search-and-match engine.

Drives one browser tab through an explicit state machine:

    HOMEPAGE_LOAD -> SEARCH_BAR_LOCATE -> TYPE_QUERY -> SUBMIT -> RESULTS_WAIT
      -> EXTRACT_AND_MATCH -> CLICK_THROUGH -> DONE
                           -> NEXT_PAGE -> RESULTS_WAIT ...
                           -> EXHAUSTED

Homepage, search-bar and typing failures raise (fatal for the bot).
Anything that goes wrong after the query is submitted ends pagination and
yields a not-found result instead.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional

from playwright.async_api import Page

from serpsurfer.core.error_logger import ErrorLogger, get_error_logger
from serpsurfer.core.error_models import ErrorComponent, ErrorSeverity
from serpsurfer.core.logging import get_logger
from serpsurfer.crawler.engines import DUCKDUCKGO, SearchEngineProfile
from serpsurfer.crawler.errors import (
    HomepageLoadError,
    QueryTypingError,
    SearchError,
    SearchInputNotFoundError,
)
from serpsurfer.crawler.extractor import extract_candidates
from serpsurfer.crawler.models import MatchResult
from serpsurfer.crawler.navigation import (
    clear_and_type,
    click_anchor_by_href,
    locate_first,
    wait_for_url_change,
)
from serpsurfer.crawler.timing import HumanTiming
from serpsurfer.crawler.url_utils import is_match, normalize_domain

logger = get_logger(__name__)


DEFAULT_NAV_TIMEOUT_MS = 60_000
DEFAULT_CLICK_TIMEOUT_MS = 30_000
DEFAULT_MAX_PAGES = 10


class SearchState(str, Enum):
    HOMEPAGE_LOAD = "homepage_load"
    SEARCH_BAR_LOCATE = "search_bar_locate"
    TYPE_QUERY = "type_query"
    SUBMIT = "submit"
    RESULTS_WAIT = "results_wait"
    EXTRACT_AND_MATCH = "extract_and_match"
    CLICK_THROUGH = "click_through"
    NEXT_PAGE = "next_page"
    DONE = "done"
    EXHAUSTED = "exhausted"


TERMINAL_STATES: FrozenSet[SearchState] = frozenset({SearchState.DONE, SearchState.EXHAUSTED})

# Errors in these states abort the bot instead of ending the search quietly.
FATAL_STATES: FrozenSet[SearchState] = frozenset({
    SearchState.HOMEPAGE_LOAD,
    SearchState.SEARCH_BAR_LOCATE,
    SearchState.TYPE_QUERY,
})

TRANSITIONS: Dict[SearchState, FrozenSet[SearchState]] = {
    SearchState.HOMEPAGE_LOAD: frozenset({SearchState.SEARCH_BAR_LOCATE}),
    SearchState.SEARCH_BAR_LOCATE: frozenset({SearchState.TYPE_QUERY}),
    SearchState.TYPE_QUERY: frozenset({SearchState.SUBMIT}),
    SearchState.SUBMIT: frozenset({SearchState.RESULTS_WAIT, SearchState.EXHAUSTED}),
    SearchState.RESULTS_WAIT: frozenset({SearchState.EXTRACT_AND_MATCH, SearchState.EXHAUSTED}),
    SearchState.EXTRACT_AND_MATCH: frozenset({
        SearchState.CLICK_THROUGH,
        SearchState.NEXT_PAGE,
        SearchState.EXHAUSTED,
    }),
    SearchState.NEXT_PAGE: frozenset({SearchState.RESULTS_WAIT, SearchState.EXHAUSTED}),
    SearchState.CLICK_THROUGH: frozenset({SearchState.DONE, SearchState.EXHAUSTED}),
}


@dataclass
class SearchSession:
    """Mutable state of one engine invocation."""
    page: Page
    keyword: str
    target_url: str
    search_selector: Optional[str] = None
    page_num: int = 0
    # running candidate counter, never reset between pages
    rank: int = 0
    matched_rank: Optional[int] = None
    matched_url: Optional[str] = None
    trace: List[SearchState] = field(default_factory=list)

    @property
    def result(self) -> MatchResult:
        if self.matched_url is None:
            return MatchResult.not_found(pages_visited=self.page_num)
        return MatchResult(
            found=True,
            rank=self.matched_rank,
            matched_url=self.matched_url,
            pages_visited=self.page_num,
        )


Handler = Callable[[SearchSession], Awaitable[SearchState]]


class SearchAndMatchEngine:
    """
    Search a keyword on one engine profile and click through to the target.

    Usage:
        >>> engine = SearchAndMatchEngine()
        >>> result = await engine.search(page, "acme widgets", "https://acme.example")
        >>> result.found, result.rank
        (True, 4)
    """

    def __init__(
        self,
        profile: SearchEngineProfile = DUCKDUCKGO,
        timing: Optional[HumanTiming] = None,
        nav_timeout_ms: int = DEFAULT_NAV_TIMEOUT_MS,
        click_timeout_ms: int = DEFAULT_CLICK_TIMEOUT_MS,
        max_pages: int = DEFAULT_MAX_PAGES,
        error_logger: Optional[ErrorLogger] = None,
    ):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.profile = profile
        self.timing = timing or HumanTiming()
        self.nav_timeout_ms = nav_timeout_ms
        self.click_timeout_ms = click_timeout_ms
        self.max_pages = max_pages
        self._error_logger = error_logger
        self._handlers: Dict[SearchState, Handler] = {
            SearchState.HOMEPAGE_LOAD: self._homepage_load,
            SearchState.SEARCH_BAR_LOCATE: self._search_bar_locate,
            SearchState.TYPE_QUERY: self._type_query,
            SearchState.SUBMIT: self._submit,
            SearchState.RESULTS_WAIT: self._results_wait,
            SearchState.EXTRACT_AND_MATCH: self._extract_and_match,
            SearchState.CLICK_THROUGH: self._click_through,
            SearchState.NEXT_PAGE: self._next_page,
        }

    @property
    def error_logger(self) -> ErrorLogger:
        return self._error_logger or get_error_logger()

    async def search(self, page: Page, keyword: str, target_url: str) -> MatchResult:
        """
        Run one search and return its match result.

        Raises:
            HomepageLoadError, SearchInputNotFoundError, QueryTypingError
        """
        session = await self.run(page, keyword, target_url)
        return session.result

    async def run(self, page: Page, keyword: str, target_url: str) -> SearchSession:
        """Run the state machine and return the finished session (with its trace)."""
        session = SearchSession(page=page, keyword=keyword, target_url=target_url)
        state = SearchState.HOMEPAGE_LOAD

        while state not in TERMINAL_STATES:
            session.trace.append(state)
            try:
                next_state = await self._handlers[state](session)
            except SearchError:
                raise
            except Exception as e:
                if state in FATAL_STATES:
                    raise
                logger.error(f"[{self.profile.name}] error on results page {session.page_num} ({state.value}): {e}")
                self.error_logger.log_exception(
                    e,
                    component=ErrorComponent.SEARCH,
                    stage=state.value,
                    domain=normalize_domain(self.profile.homepage_url),
                    url=_safe_url(page),
                    severity=ErrorSeverity.WARNING,
                    metadata={"keyword": keyword, "target_url": target_url, "page_num": session.page_num},
                )
                session.matched_rank = None
                session.matched_url = None
                next_state = SearchState.EXHAUSTED

            if next_state not in TRANSITIONS[state]:
                raise RuntimeError(f"Illegal search transition {state.value} -> {next_state.value}")
            state = next_state

        session.trace.append(state)
        result = session.result
        if result.found:
            logger.info(f"[{self.profile.name}] '{keyword}': {target_url} found at rank {result.rank}")
        else:
            logger.info(
                f"[{self.profile.name}] '{keyword}': {target_url} not found "
                f"after {session.page_num} page(s)"
            )
        return session

    # -------------------
    # State handlers
    # -------------------

    async def _homepage_load(self, s: SearchSession) -> SearchState:
        try:
            await s.page.goto(
                self.profile.homepage_url,
                wait_until="domcontentloaded",
                timeout=self.nav_timeout_ms,
            )
        except Exception as e:
            raise HomepageLoadError(f"Failed to load {self.profile.homepage_url}: {e}") from e
        await self.timing.pause(self.timing.HOMEPAGE_SETTLE_MS)
        return SearchState.SEARCH_BAR_LOCATE

    async def _search_bar_locate(self, s: SearchSession) -> SearchState:
        selector = await locate_first(s.page, self.profile.search_bar_selectors)
        if selector is None:
            fallback = self.profile.fallback_input_selector
            try:
                handle = await s.page.query_selector(fallback)
            except Exception as e:
                logger.debug(f"fallback input lookup failed: {e}")
                handle = None
            if handle is None:
                raise SearchInputNotFoundError(f"No search input found on {self.profile.name}")
            logger.info(f"[{self.profile.name}] configured search selectors missed, using '{fallback}'")
            selector = fallback
        s.search_selector = selector
        return SearchState.TYPE_QUERY

    async def _type_query(self, s: SearchSession) -> SearchState:
        try:
            await clear_and_type(s.page, s.search_selector, s.keyword, self.timing)
        except Exception as e:
            raise QueryTypingError(f"Failed to type into {s.search_selector}: {e}") from e
        return SearchState.SUBMIT

    async def _submit(self, s: SearchSession) -> SearchState:
        await self.timing.pause(self.timing.BEFORE_SUBMIT_MS)
        previous_url = s.page.url
        await s.page.keyboard.press("Enter")
        if not await wait_for_url_change(s.page, previous_url, self.nav_timeout_ms):
            logger.info(f"[{self.profile.name}] no navigation after submit, assuming client-side results")
        await self.timing.pause(self.timing.RESULTS_SETTLE_MS)
        return SearchState.RESULTS_WAIT

    async def _results_wait(self, s: SearchSession) -> SearchState:
        s.page_num += 1
        container = await locate_first(s.page, self.profile.result_container_selectors)
        if container is None:
            logger.warning(
                f"[{self.profile.name}] no result container on page {s.page_num}, scanning raw anchors"
            )
        await self.timing.pause(self.timing.EXTRACT_SETTLE_MS)
        return SearchState.EXTRACT_AND_MATCH

    async def _extract_and_match(self, s: SearchSession) -> SearchState:
        candidates = await extract_candidates(s.page, self.profile)
        logger.debug(f"[{self.profile.name}] page {s.page_num}: {len(candidates)} candidates")

        for candidate in candidates:
            s.rank += 1
            try:
                matched = is_match(candidate.raw_href, s.target_url)
            except Exception as e:
                logger.warning(f"skipping candidate {candidate.raw_href!r}: {e}")
                continue
            if matched:
                s.matched_rank = s.rank
                s.matched_url = candidate.raw_href
                return SearchState.CLICK_THROUGH

        if s.page_num >= self.max_pages:
            logger.info(f"[{self.profile.name}] page bound {self.max_pages} reached")
            return SearchState.EXHAUSTED
        return SearchState.NEXT_PAGE

    async def _click_through(self, s: SearchSession) -> SearchState:
        href = s.matched_url
        previous_url = s.page.url
        try:
            clicked = await click_anchor_by_href(s.page, href, self.profile.result_link_selectors)
        except Exception as e:
            logger.debug(f"DOM click failed for {href}: {e}")
            clicked = False

        if clicked:
            await wait_for_url_change(s.page, previous_url, self.click_timeout_ms)
            await self.timing.sleep_ms(self.timing.CLICK_SETTLE_MS)
            return SearchState.DONE

        logger.info(f"[{self.profile.name}] anchor for {href} not clickable, navigating directly")
        try:
            await s.page.goto(href, wait_until="domcontentloaded", timeout=self.click_timeout_ms)
        except Exception as e:
            logger.warning(f"direct navigation to {href} failed: {e}")
        return SearchState.DONE

    async def _next_page(self, s: SearchSession) -> SearchState:
        button = await s.page.query_selector(self.profile.next_page_selector)
        if button is None:
            logger.info(f"[{self.profile.name}] no more results after page {s.page_num}")
            return SearchState.EXHAUSTED

        await self.timing.pause(self.timing.BEFORE_NEXT_PAGE_MS)
        previous_url = s.page.url
        await button.click()
        await wait_for_url_change(s.page, previous_url, self.nav_timeout_ms)
        return SearchState.RESULTS_WAIT


def _safe_url(page: Page) -> Optional[str]:
    try:
        return page.url
    except Exception:
        return None
