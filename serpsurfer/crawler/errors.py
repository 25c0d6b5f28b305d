"""
Exceptions raised by the search-and-match engine.

Only fatal-to-run conditions are exceptions. Recoverable conditions
(missing result container, missing next-page control, navigation timeouts
after submit) are logged and handled inside the engine.
"""


class SearchError(Exception):
    """Base class for errors that abort one bot's search run."""


class HomepageLoadError(SearchError):
    """The search engine homepage never finished loading."""


class SearchInputNotFoundError(SearchError):
    """No search input could be located, not even the generic fallback."""


class QueryTypingError(SearchError):
    """Focusing or typing into the search input failed."""
