"""
Unit tests for the traffic stores and their models.
"""

import pytest
from pydantic import ValidationError

from serpsurfer.db.models import SeoSummary, TrafficRecord
from serpsurfer.db.storage import InMemoryTrafficStore
from serpsurfer.db.supabase_client import SupabaseTrafficStore
from serpsurfer.utils.date_utils import day_key
from tests.conftest import KEYWORD, TARGET, USER


KEY = (USER, KEYWORD, TARGET, "US")


class TestTrafficRecord:
    """Tests for TrafficRecord model."""

    def test_defaults(self):
        record = TrafficRecord(user_id=USER, keyword=KEYWORD, website=TARGET, country="US")
        assert record.rank is None
        assert record.hits == 0
        assert record.hits_by_date == {}
        assert record.key == KEY

    def test_rank_must_be_positive(self):
        with pytest.raises(ValidationError):
            TrafficRecord(user_id=USER, keyword=KEYWORD, website=TARGET, country="US", rank=0)

    def test_assignment_is_validated(self):
        record = TrafficRecord(user_id=USER, keyword=KEYWORD, website=TARGET, country="US")
        with pytest.raises(ValidationError):
            record.hits_by_date = {"2026-10-18": -1}

    def test_to_row_nests_seo(self):
        row = TrafficRecord(user_id=USER, keyword=KEYWORD, website=TARGET, country="US").to_row()
        assert row["seo"]["title"] == ""
        assert row["website"] == TARGET

    def test_seo_summary_ignores_unknown_fields(self):
        assert SeoSummary(title="x", score=99).title == "x"


class TestInMemoryStore:
    """Tests for InMemoryTrafficStore."""

    def test_create_is_idempotent(self, store):
        first = store.create_traffic_record(*KEY)
        assert store.create_traffic_record(*KEY) is first

    def test_store_rank_last_write_wins(self, store):
        """Test that repeated rank writes keep one record with the latest rank."""
        store.store_rank(*KEY, 5)
        store.store_rank(*KEY, 3)
        store.store_rank(*KEY, 3)
        assert store.get_traffic_record(*KEY).rank == 3

    def test_store_null_rank(self, store):
        store.store_rank(*KEY, 5)
        store.store_rank(*KEY, None)
        assert store.get_traffic_record(*KEY).rank is None

    def test_increment_hits_updates_histogram(self, store):
        store.increment_hits(*KEY)
        store.increment_hits(*KEY, 2)
        record = store.get_traffic_record(*KEY)
        assert record.hits == 3
        assert record.hits_by_date == {day_key(): 3}

    def test_negative_increment_rejected(self, store):
        with pytest.raises(ValueError):
            store.increment_hits(*KEY, -1)

    def test_seo_summary_needs_record(self, store):
        store.update_seo_summary(*KEY, {"title": "Acme"})
        assert store.get_traffic_record(*KEY) is None

    def test_seo_summary_is_copied(self, store):
        store.create_traffic_record(*KEY)
        store.update_seo_summary(*KEY, {"title": "Acme", "word_count": 10})
        record = store.get_traffic_record(*KEY)
        assert record.seo.title == "Acme"
        assert record.seo.word_count == 10
        assert record.seo.last_updated == record.last_analyzed

    def test_metadata_overwrites(self, store):
        store.store_metadata(USER, KEYWORD, TARGET, {"v": 1})
        store.store_metadata(USER, KEYWORD, TARGET, {"v": 2})
        assert store.get_metadata(USER, KEYWORD, TARGET).metadata == {"v": 2}

    def test_keys_are_separate(self, store):
        store.store_rank(USER, KEYWORD, TARGET, "US", 1)
        store.store_rank(USER, KEYWORD, TARGET, "DE", 9)
        assert store.get_traffic_record(USER, KEYWORD, TARGET, "US").rank == 1
        assert store.get_traffic_record(USER, KEYWORD, TARGET, "DE").rank == 9


class TestSupabaseStore:
    """Tests for SupabaseTrafficStore against the mock client."""

    def test_requires_client(self):
        with pytest.raises(RuntimeError):
            SupabaseTrafficStore()

    def test_rank_upsert_uses_campaign_key(self, mock_supabase_client):
        store = SupabaseTrafficStore()
        store.store_rank(*KEY, 4)
        store.store_rank(*KEY, 2)

        table = mock_supabase_client.table("traffic_data")
        assert len(table.data) == 1
        assert table.data[0]["rank"] == 2
        assert table.upserts[-1][1] == "user_id,keyword,website,country"
        assert store.get_traffic_record(*KEY).rank == 2

    def test_increment_hits_round_trip(self, mock_supabase_client):
        store = SupabaseTrafficStore()
        store.increment_hits(*KEY)
        store.increment_hits(*KEY)
        record = store.get_traffic_record(*KEY)
        assert record.hits == 2
        assert record.hits_by_date == {day_key(): 2}

    def test_metadata_table(self, mock_supabase_client):
        store = SupabaseTrafficStore()
        store.store_metadata(USER, KEYWORD, TARGET, {"url": TARGET})
        table = mock_supabase_client.table("website_metadata")
        assert table.upserts[-1][1] == "user_id,keyword,website"
        assert store.get_metadata(USER, KEYWORD, TARGET).metadata == {"url": TARGET}

    def test_upsert_failure_is_soft(self, mock_supabase_client, error_dir):
        """Test that a failing write is logged and recorded instead of raised."""
        store = SupabaseTrafficStore()
        store.create_traffic_record(*KEY)
        mock_supabase_client.table("traffic_data").fail_writes = True

        store.store_rank(*KEY, 3)

        assert store.get_traffic_record(*KEY).rank is None
        lines = [line for f in error_dir.glob("errors_*.jsonl") for line in f.read_text().splitlines()]
        assert any('"db_upsert_error"' in line and '"store_rank"' in line for line in lines)

    def test_read_failure_skips_write(self, mock_supabase_client, error_dir):
        """Test that an unreadable row is neither raised nor overwritten."""
        store = SupabaseTrafficStore()
        store.increment_hits(*KEY)
        store.increment_hits(*KEY)
        table = mock_supabase_client.table("traffic_data")
        table.fail = True
        upserts_before = len(table.upserts)

        store.increment_hits(*KEY)
        store.store_rank(*KEY, 5)
        assert store.get_traffic_record(*KEY) is None

        table.fail = False
        assert len(table.upserts) == upserts_before
        record = store.get_traffic_record(*KEY)
        assert record.hits == 2
        assert record.rank is None
        lines = [line for f in error_dir.glob("errors_*.jsonl") for line in f.read_text().splitlines()]
        assert any('"db_query_error"' in line and '"increment_hits"' in line for line in lines)
