"""
Unit tests for configuration loading and validation.
"""

from pathlib import Path

import pytest

from serpsurfer.core import config as config_module
from serpsurfer.core.config import DEFAULT_USER_AGENT, Config, get_config


@pytest.fixture
def no_env_file(tmp_path: Path) -> Path:
    return tmp_path / "missing.env"


class TestDefaults:

    def test_defaults(self, no_env_file, monkeypatch):
        for var in ["HEADLESS", "USER_AGENT", "NAV_TIMEOUT_MS", "MAX_RESULT_PAGES", "SEARCH_ENGINE"]:
            monkeypatch.delenv(var, raising=False)
        config = Config(env_path=no_env_file)
        assert config.headless is True
        assert config.user_agent == DEFAULT_USER_AGENT
        assert config.search_engine == "duckduckgo"
        assert config.nav_timeout_ms == 60000
        assert config.click_timeout_ms == 30000
        assert config.max_result_pages == 10
        assert config.supabase_enabled is False
        assert config.traffic_table == "traffic_data"
        assert config.metadata_table == "website_metadata"

    def test_env_file_is_loaded(self, tmp_path, monkeypatch):
        # registered so the values the file writes are undone afterwards
        monkeypatch.setenv("MAX_RESULT_PAGES", "10")
        monkeypatch.setenv("HEADLESS", "1")
        env = tmp_path / ".env"
        env.write_text("MAX_RESULT_PAGES=3\nHEADLESS=0\n")
        config = Config(env_path=env)
        assert config.max_result_pages == 3
        assert config.headless is False


class TestValidate:

    def test_disabled_supabase_is_valid(self, no_env_file):
        Config(env_path=no_env_file).validate()

    def test_enabled_supabase_needs_credentials(self, no_env_file, monkeypatch):
        monkeypatch.setenv("SUPABASE_ENABLED", "1")
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        with pytest.raises(ValueError) as exc_info:
            Config(env_path=no_env_file).validate()
        assert "SUPABASE_URL" in str(exc_info.value)
        assert "SUPABASE_SERVICE_ROLE_KEY" in str(exc_info.value)

    def test_collects_every_problem(self, no_env_file, monkeypatch):
        monkeypatch.setenv("MAX_RESULT_PAGES", "0")
        monkeypatch.setenv("NAV_TIMEOUT_MS", "-1")
        with pytest.raises(ValueError) as exc_info:
            Config(env_path=no_env_file).validate()
        assert "MAX_RESULT_PAGES" in str(exc_info.value)
        assert "NAV_TIMEOUT_MS" in str(exc_info.value)

    def test_unknown_log_level(self, no_env_file, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            Config(env_path=no_env_file).validate()

    def test_repr_hides_key(self, no_env_file, monkeypatch):
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "super-secret")
        assert "super-secret" not in repr(Config(env_path=no_env_file))


class TestSingleton:

    def test_get_config_is_cached(self, no_env_file):
        first = get_config(no_env_file)
        assert get_config() is first
        assert config_module._config is first
