# serpsurfer/db/supabase_client.py
"""
Supabase-backed implementation of the traffic store.

Storage fails softly: a query or upsert error is logged and recorded, and
the campaign keeps running. A write whose row cannot be read first is
skipped rather than overwriting the stored counters. Calls are synchronous
and briefly hold the event loop while other tabs wait.
"""

from typing import Any, Dict, List, Optional, Tuple

from serpsurfer.core.config import get_config
from serpsurfer.core.error_logger import get_error_logger
from serpsurfer.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from serpsurfer.core.logging import get_logger
from serpsurfer.db.models import SeoSummary, TrafficRecord, WebsiteMetadataRecord
from serpsurfer.db.storage import TrafficStore
from serpsurfer.utils.date_utils import day_key, get_current_timestamp

logger = get_logger(__name__)

TRAFFIC_CONFLICT = "user_id,keyword,website,country"
METADATA_CONFLICT = "user_id,keyword,website"

_client = None


def _init_client():
    """
    Lazily create a singleton Supabase client.

    Returns:
        client instance or None if disabled / misconfigured.
    """
    global _client
    if _client is not None:
        return _client

    config = get_config()
    if not config.supabase_enabled:
        logger.info("Supabase disabled via SUPABASE_ENABLED")
        return None

    if not config.supabase_url or not config.supabase_service_role_key:
        logger.warning("Supabase disabled: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY missing")
        return None

    from supabase import create_client

    _client = create_client(config.supabase_url, config.supabase_service_role_key)
    logger.info(f"Supabase client initialized for {config.supabase_url}")
    return _client


def get_supabase():
    """Convenience wrapper used by other modules."""
    return _init_client()


def is_supabase_enabled() -> bool:
    """True if a client can be created and used."""
    return _init_client() is not None


class SupabaseTrafficStore(TrafficStore):
    """Traffic store persisting to two Supabase tables."""

    def __init__(self, client: Any = None, traffic_table: Optional[str] = None, metadata_table: Optional[str] = None):
        config = get_config()
        self._client = client if client is not None else get_supabase()
        if self._client is None:
            raise RuntimeError("Supabase is not configured")
        self.traffic_table = traffic_table or config.traffic_table
        self.metadata_table = metadata_table or config.metadata_table

    # -------------------
    # Reads
    # -------------------

    def _select_one(self, table: str, filters: Dict[str, str]) -> Optional[Dict[str, Any]]:
        query = self._client.table(table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        rows: List[Dict[str, Any]] = query.limit(1).execute().data or []
        return rows[0] if rows else None

    def _load_traffic(self, user_id, keyword, website, country, stage: str) -> Tuple[bool, Optional[TrafficRecord]]:
        """
        Fetch a traffic row.

        Returns:
            (readable, record); readable is False when the query itself failed
        """
        filters = {"user_id": user_id, "keyword": keyword, "website": website, "country": country}
        try:
            row = self._select_one(self.traffic_table, filters)
        except Exception as e:
            self._record_failure(e, self.traffic_table, filters, stage, ErrorType.DB_QUERY_ERROR, "read from")
            return False, None
        return True, (TrafficRecord(**row) if row else None)

    def get_traffic_record(self, user_id, keyword, website, country) -> Optional[TrafficRecord]:
        _, record = self._load_traffic(user_id, keyword, website, country, ErrorStage.READ_RECORD)
        return record

    def get_metadata(self, user_id, keyword, website) -> Optional[WebsiteMetadataRecord]:
        filters = {"user_id": user_id, "keyword": keyword, "website": website}
        try:
            row = self._select_one(self.metadata_table, filters)
        except Exception as e:
            self._record_failure(e, self.metadata_table, filters, ErrorStage.READ_RECORD, ErrorType.DB_QUERY_ERROR, "read from")
            return None
        return WebsiteMetadataRecord(**row) if row else None

    # -------------------
    # Writes
    # -------------------

    def _record_failure(self, exc: Exception, table: str, row: Dict[str, Any], stage: str, error_type: ErrorType, action: str) -> None:
        logger.error(f"{action} '{table}' failed: {exc}")
        get_error_logger().log_exception(
            exc,
            component=ErrorComponent.DATABASE,
            stage=stage,
            domain=str(row.get("website") or "unknown"),
            user_id=row.get("user_id"),
            severity=ErrorSeverity.WARNING,
            error_type=error_type,
        )

    def _upsert(self, table: str, row: Dict[str, Any], on_conflict: str, stage: str) -> bool:
        try:
            self._client.table(table).upsert(row, on_conflict=on_conflict).execute()
            return True
        except Exception as e:
            self._record_failure(e, table, row, stage, ErrorType.DB_UPSERT_ERROR, "upsert into")
            return False

    def create_traffic_record(self, user_id, keyword, website, country) -> TrafficRecord:
        readable, existing = self._load_traffic(user_id, keyword, website, country, ErrorStage.STORE_RANK)
        if existing is not None:
            return existing
        record = TrafficRecord(user_id=user_id, keyword=keyword, website=website, country=country)
        # an unreadable row may exist; writing a blank one would reset it
        if readable:
            self._upsert(self.traffic_table, record.to_row(), TRAFFIC_CONFLICT, ErrorStage.STORE_RANK)
        return record

    def _current(self, user_id, keyword, website, country, stage: str) -> Optional[TrafficRecord]:
        """The stored record, a new one when none exists, or None when the row could not be read."""
        readable, record = self._load_traffic(user_id, keyword, website, country, stage)
        if not readable:
            return None
        return record or TrafficRecord(user_id=user_id, keyword=keyword, website=website, country=country)

    def store_rank(self, user_id, keyword, website, country, rank) -> None:
        record = self._current(user_id, keyword, website, country, ErrorStage.STORE_RANK)
        if record is None:
            return
        record.rank = rank
        record.updated_at = get_current_timestamp()
        self._upsert(self.traffic_table, record.to_row(), TRAFFIC_CONFLICT, ErrorStage.STORE_RANK)

    def increment_hits(self, user_id, keyword, website, country, count=1) -> None:
        if count < 0:
            raise ValueError("count must be non-negative")
        record = self._current(user_id, keyword, website, country, ErrorStage.INCREMENT_HITS)
        if record is None:
            return
        today = day_key()
        by_date = dict(record.hits_by_date)
        by_date[today] = by_date.get(today, 0) + count
        record.hits = record.hits + count
        record.hits_by_date = by_date
        record.updated_at = get_current_timestamp()
        self._upsert(self.traffic_table, record.to_row(), TRAFFIC_CONFLICT, ErrorStage.INCREMENT_HITS)

    def store_metadata(self, user_id, keyword, website, metadata) -> None:
        record = WebsiteMetadataRecord(
            user_id=user_id, keyword=keyword, website=website, metadata=dict(metadata)
        )
        self._upsert(self.metadata_table, record.model_dump(), METADATA_CONFLICT, ErrorStage.STORE_METADATA)

    def update_seo_summary(self, user_id, keyword, website, country, summary) -> None:
        _, record = self._load_traffic(user_id, keyword, website, country, ErrorStage.STORE_METADATA)
        if record is None:
            logger.info(f"No traffic record for SEO update: {website} / '{keyword}'")
            return
        now = get_current_timestamp()
        record.seo = SeoSummary(**{**summary, "last_updated": now})
        record.last_analyzed = now
        self._upsert(self.traffic_table, record.to_row(), TRAFFIC_CONFLICT, ErrorStage.STORE_METADATA)
