"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all tests in the test suite.
"""

import random
from pathlib import Path
from typing import Any, Dict

import pytest

from serpsurfer.core import config as config_module
from serpsurfer.core import error_logger as error_logger_module
from serpsurfer.core.error_logger import ErrorLogger
from serpsurfer.crawler.timing import HumanTiming
from serpsurfer.db.storage import InMemoryTrafficStore
from tests.fakes import SAMPLE_SNAPSHOT, SleepRecorder


TARGET = "https://acme.example"
KEYWORD = "acme widgets"
USER = "user-1"


# ============================================================================
# Environment isolation
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path):
    """No Supabase, fresh config, error records written under tmp_path."""
    monkeypatch.setenv("SUPABASE_ENABLED", "0")
    monkeypatch.setenv("ERROR_LOG_FALLBACK_DIR", str(tmp_path / "errors"))
    monkeypatch.setattr(config_module, "_config", None)
    monkeypatch.setattr(
        error_logger_module,
        "_error_logger",
        ErrorLogger(fallback_dir=tmp_path / "errors"),
    )
    # ErrorLogger() caches a Config via get_config(); drop it so tests that
    # set env vars afterwards get a fresh one.
    monkeypatch.setattr(config_module, "_config", None)
    yield


@pytest.fixture
def error_dir(tmp_path: Path) -> Path:
    """Directory the autouse error logger writes JSONL into."""
    return tmp_path / "errors"


# ============================================================================
# Timing and Storage
# ============================================================================

@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def timing(sleeper: SleepRecorder) -> HumanTiming:
    """Seeded timing policy that never actually sleeps."""
    return HumanTiming(rng=random.Random(7), sleeper=sleeper)


@pytest.fixture
def store() -> InMemoryTrafficStore:
    return InMemoryTrafficStore()


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_snapshot() -> Dict[str, Any]:
    """Return a sample SEO snapshot as the page script produces it."""
    return dict(SAMPLE_SNAPSHOT)


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_supabase_client(monkeypatch):
    """Mock Supabase client for testing."""
    class MockTable:
        def __init__(self):
            self.data = []
            self.upserts = []
            self._filters = {}
            self.fail = False
            self.fail_writes = False
            self._write_pending = False

        def select(self, *args):
            self._filters = {}
            self._write_pending = False
            return self

        def eq(self, field, value):
            self._filters[field] = value
            return self

        def limit(self, n):
            return self

        def execute(self):
            if self.fail or self._write_pending:
                self._write_pending = False
                raise RuntimeError("supabase unavailable")

            class Result:
                def __init__(self, data):
                    self.data = data
            rows = [
                r for r in self.data
                if all(r.get(k) == v for k, v in self._filters.items())
            ]
            return Result(rows)

        def upsert(self, rows, on_conflict=None):
            if self.fail_writes:
                self._write_pending = True
                return self
            if isinstance(rows, dict):
                rows = [rows]
            self.upserts.append((rows, on_conflict))
            keys = on_conflict.split(",") if on_conflict else []
            for row in rows:
                self.data = [
                    r for r in self.data
                    if not keys or any(r.get(k) != row.get(k) for k in keys)
                ]
                self.data.append(dict(row))
            return self

    class MockClient:
        def __init__(self):
            self.tables = {}

        def table(self, name: str):
            if name not in self.tables:
                self.tables[name] = MockTable()
            return self.tables[name]

    mock_client = MockClient()

    # Monkeypatch the client getter
    import serpsurfer.db.supabase_client as supabase_module
    monkeypatch.setattr(supabase_module, "_client", mock_client)
    monkeypatch.setattr(supabase_module, "get_supabase", lambda: mock_client)

    return mock_client


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
