"""
Value types shared by the engine, the simulator and the campaign runner.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from serpsurfer.crawler.url_utils import normalize_domain


class SearchTask(BaseModel):
    """
    One campaign invocation: search ``keyword`` and visit ``target_url``.

    Immutable once constructed; consumed exactly once by the campaign runner.
    """
    target_url: str = Field(..., min_length=1, description="URL to find and visit")
    keyword: str = Field(..., min_length=1, description="Search query")
    country: str = Field(default="US", description="Country the campaign reports under")
    user_id: str = Field(..., min_length=1, description="Campaign owner")
    dwell_time_ms: int = Field(default=3000, ge=0, description="Time spent on the target page")
    bot_count: int = Field(default=1, ge=1, description="Concurrent tabs")

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("target_url")
    @classmethod
    def validate_target_url(cls, v: str) -> str:
        """Require something that normalizes to a domain."""
        if not normalize_domain(v):
            raise ValueError("target_url has no domain")
        return v


@dataclass(frozen=True)
class CandidateLink:
    """An outbound result link extracted from one results page."""
    raw_href: str
    normalized_domain: str

    @classmethod
    def from_href(cls, href: str) -> "CandidateLink":
        return cls(raw_href=href, normalized_domain=normalize_domain(href))


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of one search-and-match run.

    ``rank`` is the 1-based position of the match among all external
    candidates seen across every visited results page.
    """
    found: bool
    rank: Optional[int] = None
    matched_url: Optional[str] = None
    pages_visited: int = 0

    @classmethod
    def not_found(cls, pages_visited: int = 0) -> "MatchResult":
        return cls(found=False, rank=None, matched_url=None, pages_visited=pages_visited)


class BotOutcome(str, Enum):
    """What happened to one bot in a campaign run."""
    INTERACTED = "interacted"
    INTERACTION_FAILED = "interaction_failed"
    NOT_FOUND = "not_found"
    ERROR = "error"
