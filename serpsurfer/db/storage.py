"""
Storage interface consumed by the campaign runner.

Implementations must make ``store_rank`` idempotent per campaign key (the
last write wins) and keep the per-day hit histogram keyed by ISO date.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from serpsurfer.core.logging import get_logger
from serpsurfer.db.models import (
    MetadataKey,
    SeoSummary,
    TrafficKey,
    TrafficRecord,
    WebsiteMetadataRecord,
)
from serpsurfer.utils.date_utils import day_key, get_current_timestamp

logger = get_logger(__name__)


class TrafficStore(ABC):
    """Narrow persistence interface for ranks, hits and SEO snapshots."""

    @abstractmethod
    def create_traffic_record(
        self, user_id: str, keyword: str, website: str, country: str
    ) -> TrafficRecord:
        """Create the record for a campaign key, or return the existing one."""

    @abstractmethod
    def store_rank(
        self, user_id: str, keyword: str, website: str, country: str, rank: Optional[int]
    ) -> None:
        """Overwrite the rank for a campaign key."""

    @abstractmethod
    def increment_hits(
        self, user_id: str, keyword: str, website: str, country: str, count: int = 1
    ) -> None:
        """Add ``count`` to the running total and to today's histogram bucket."""

    @abstractmethod
    def store_metadata(
        self, user_id: str, keyword: str, website: str, metadata: Dict[str, Any]
    ) -> None:
        """Upsert the full SEO snapshot."""

    @abstractmethod
    def update_seo_summary(
        self, user_id: str, keyword: str, website: str, country: str, summary: Dict[str, Any]
    ) -> None:
        """Copy a flattened SEO summary onto the traffic record."""

    @abstractmethod
    def get_traffic_record(
        self, user_id: str, keyword: str, website: str, country: str
    ) -> Optional[TrafficRecord]:
        """Fetch a traffic record, or None."""

    @abstractmethod
    def get_metadata(self, user_id: str, keyword: str, website: str) -> Optional[WebsiteMetadataRecord]:
        """Fetch the latest SEO snapshot, or None."""


class InMemoryTrafficStore(TrafficStore):
    """Process-local store used by tests and dry runs."""

    def __init__(self):
        self._traffic: Dict[TrafficKey, TrafficRecord] = {}
        self._metadata: Dict[MetadataKey, WebsiteMetadataRecord] = {}

    def create_traffic_record(self, user_id, keyword, website, country) -> TrafficRecord:
        key = (user_id, keyword, website, country)
        record = self._traffic.get(key)
        if record is None:
            record = TrafficRecord(user_id=user_id, keyword=keyword, website=website, country=country)
            self._traffic[key] = record
        return record

    def store_rank(self, user_id, keyword, website, country, rank) -> None:
        record = self.create_traffic_record(user_id, keyword, website, country)
        record.rank = rank
        record.updated_at = get_current_timestamp()
        logger.debug(f"rank {rank} stored for {website} / '{keyword}'")

    def increment_hits(self, user_id, keyword, website, country, count=1) -> None:
        if count < 0:
            raise ValueError("count must be non-negative")
        record = self.create_traffic_record(user_id, keyword, website, country)
        today = day_key()
        by_date = dict(record.hits_by_date)
        by_date[today] = by_date.get(today, 0) + count
        record.hits = record.hits + count
        record.hits_by_date = by_date
        record.updated_at = get_current_timestamp()

    def store_metadata(self, user_id, keyword, website, metadata) -> None:
        key = (user_id, keyword, website)
        self._metadata[key] = WebsiteMetadataRecord(
            user_id=user_id, keyword=keyword, website=website, metadata=dict(metadata)
        )

    def update_seo_summary(self, user_id, keyword, website, country, summary) -> None:
        record = self.get_traffic_record(user_id, keyword, website, country)
        if record is None:
            logger.info(f"No traffic record for SEO update: {website} / '{keyword}'")
            return
        now = get_current_timestamp()
        record.seo = SeoSummary(**{**summary, "last_updated": now})
        record.last_analyzed = now

    def get_traffic_record(self, user_id, keyword, website, country) -> Optional[TrafficRecord]:
        return self._traffic.get((user_id, keyword, website, country))

    def get_metadata(self, user_id, keyword, website) -> Optional[WebsiteMetadataRecord]:
        return self._metadata.get((user_id, keyword, website))
