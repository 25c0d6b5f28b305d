"""
Search-and-visit crawler.

Module Structure:
- url_utils: URL normalisation and fuzzy target matching
- models: SearchTask, CandidateLink, MatchResult, BotOutcome
- engines: search engine profiles (selector chains as data)
- timing: injectable human-like timing policy
- extractor: result link extraction (requires playwright)
- navigation: typing, selector chains, click helpers (requires playwright)
- search: the search-and-match state machine (requires playwright)
- seo: SEO snapshot extraction (requires playwright)
- interaction: dwell / scroll / random link simulator (requires playwright)
- browser: detection-resistant browser launch (requires playwright)
- campaign: concurrent bot runner (requires playwright)
"""

# No playwright dependency
from serpsurfer.crawler.url_utils import (
    normalize_url,
    normalize_domain,
    is_match,
    on_target_domain,
)
from serpsurfer.crawler.models import (
    SearchTask,
    CandidateLink,
    MatchResult,
    BotOutcome,
)
from serpsurfer.crawler.engines import (
    SelectorStep,
    SearchEngineProfile,
    DUCKDUCKGO,
    PROFILES,
    get_profile,
)
from serpsurfer.crawler.errors import (
    SearchError,
    HomepageLoadError,
    SearchInputNotFoundError,
    QueryTypingError,
)
from serpsurfer.crawler.timing import HumanTiming


_LAZY = {
    "extract_candidates": "serpsurfer.crawler.extractor",
    "filter_candidates": "serpsurfer.crawler.extractor",
    "SearchAndMatchEngine": "serpsurfer.crawler.search",
    "SearchState": "serpsurfer.crawler.search",
    "InteractionSimulator": "serpsurfer.crawler.interaction",
    "extract_seo_metadata": "serpsurfer.crawler.seo",
    "summarize_seo": "serpsurfer.crawler.seo",
    "stealth_context": "serpsurfer.crawler.browser",
    "CampaignRunner": "serpsurfer.crawler.campaign",
}


def __getattr__(name):
    """Lazy loading for playwright-dependent names."""
    module_name = _LAZY.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    import importlib
    return getattr(importlib.import_module(module_name), name)


__all__ = [
    "normalize_url",
    "normalize_domain",
    "is_match",
    "on_target_domain",
    "SearchTask",
    "CandidateLink",
    "MatchResult",
    "BotOutcome",
    "SelectorStep",
    "SearchEngineProfile",
    "DUCKDUCKGO",
    "PROFILES",
    "get_profile",
    "SearchError",
    "HomepageLoadError",
    "SearchInputNotFoundError",
    "QueryTypingError",
    "HumanTiming",
    *_LAZY,
]
