"""
Search engine profiles.

A profile is data only: ordered selector chains with their own timeouts,
so a new engine is added by writing a profile, not by touching the engine.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class SelectorStep:
    """One link of a selector-fallback chain."""
    selector: str
    timeout_ms: int


@dataclass(frozen=True)
class SearchEngineProfile:
    """Static configuration for one supported search engine."""
    name: str
    homepage_url: str
    search_bar_selectors: Tuple[SelectorStep, ...]
    result_link_selectors: Tuple[str, ...]
    result_container_selectors: Tuple[SelectorStep, ...]
    next_page_selector: str
    # substrings marking a link as engine-internal (own host, redirect wrappers)
    internal_link_markers: Tuple[str, ...] = field(default_factory=tuple)
    fallback_input_selector: str = "input"

    def is_internal_link(self, href: str) -> bool:
        lower = href.lower()
        return any(marker in lower for marker in self.internal_link_markers)


SEARCH_BAR_TIMEOUT_MS = 5_000
RESULT_CONTAINER_TIMEOUT_MS = 10_000


DUCKDUCKGO = SearchEngineProfile(
    name="DuckDuckGo",
    homepage_url="https://duckduckgo.com",
    search_bar_selectors=tuple(
        SelectorStep(sel, SEARCH_BAR_TIMEOUT_MS)
        for sel in (
            'input[name="q"]',
            "#search_form_input_homepage",
            "#search_form_input",
            'input[type="text"]',
            'input[type="search"]',
        )
    ),
    result_link_selectors=(
        '[data-testid="result-title-a"]',
        ".result__url",
        ".result__a",
        "h2 a",
    ),
    result_container_selectors=tuple(
        SelectorStep(sel, RESULT_CONTAINER_TIMEOUT_MS)
        for sel in (
            '[data-testid="result"]',
            ".result",
            ".web-result",
            ".result__body",
        )
    ),
    next_page_selector="#more-results, .result--more__btn",
    internal_link_markers=("duckduckgo.com", "/?uddg="),
)


PROFILES: Dict[str, SearchEngineProfile] = {
    "duckduckgo": DUCKDUCKGO,
}


def get_profile(name: str) -> SearchEngineProfile:
    """
    Look up an engine profile by name (case-insensitive).

    Raises:
        KeyError: If no profile is registered under ``name``
    """
    try:
        return PROFILES[name.lower()]
    except KeyError:
        raise KeyError(f"Unknown search engine profile: {name!r} (known: {sorted(PROFILES)})") from None
