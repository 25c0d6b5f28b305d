"""
Pydantic models for persisted campaign data.

A traffic record tracks one (user, keyword, website, country) campaign key:
its latest rank, hit totals and a flattened SEO summary. Full SEO
snapshots live in a separate metadata record keyed without country.
"""

from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, field_validator

from serpsurfer.utils.date_utils import get_current_timestamp


TrafficKey = Tuple[str, str, str, str]
MetadataKey = Tuple[str, str, str]


class SeoSummary(BaseModel):
    """Flattened SEO fields copied onto the traffic record."""
    title: str = ""
    description: str = ""
    keywords: str = ""
    canonical: str = ""
    robots: str = ""
    h1_tags: List[str] = Field(default_factory=list)
    h2_tags: List[str] = Field(default_factory=list)
    h3_tags: List[str] = Field(default_factory=list)
    image_count: int = 0
    internal_links: int = 0
    external_links: int = 0
    word_count: int = 0
    page_load_time: int = 0
    has_schema: bool = False
    schema_types: List[str] = Field(default_factory=list)
    last_updated: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class TrafficRecord(BaseModel):
    """
    Rank and hit counters for one campaign key.

    ``rank`` is None until the target has been found (or after a run that
    did not find it).
    """
    user_id: str = Field(..., min_length=1)
    keyword: str = Field(..., min_length=1)
    website: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    rank: Optional[int] = Field(None, ge=1)
    hits: int = Field(default=0, ge=0)
    hits_by_date: Dict[str, int] = Field(default_factory=dict)
    seo: SeoSummary = Field(default_factory=SeoSummary)
    last_analyzed: Optional[str] = None
    created_at: str = Field(default_factory=get_current_timestamp)
    updated_at: str = Field(default_factory=get_current_timestamp)

    model_config = ConfigDict(validate_assignment=True)

    @property
    def key(self) -> TrafficKey:
        return (self.user_id, self.keyword, self.website, self.country)

    @field_validator("hits_by_date")
    @classmethod
    def validate_hits_by_date(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Reject negative per-day counts."""
        for day, count in v.items():
            if count < 0:
                raise ValueError(f"negative hit count for {day}")
        return v

    def to_row(self) -> Dict[str, Any]:
        """Serialize for a Supabase upsert."""
        row = self.model_dump()
        row["seo"] = self.seo.model_dump()
        return row


class WebsiteMetadataRecord(BaseModel):
    """Latest full SEO snapshot for (user, keyword, website)."""
    user_id: str = Field(..., min_length=1)
    keyword: str = Field(..., min_length=1)
    website: str = Field(..., min_length=1)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    last_analyzed: str = Field(default_factory=get_current_timestamp)

    @property
    def key(self) -> MetadataKey:
        return (self.user_id, self.keyword, self.website)
