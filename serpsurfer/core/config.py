"""
Configuration Management for serpsurfer

This module provides centralized configuration management with:
- Environment variable loading
- Type validation
- Sensible defaults
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_FALSE_VALUES = {"0", "false", "False"}


class Config:
    """
    Worker configuration loaded from environment variables.

    All configuration is read from configs/.env file or environment variables.
    See configs/.env.example for documentation of all settings.
    """

    def __init__(self, env_path: Optional[Path] = None):
        """
        Initialize configuration from environment.

        Args:
            env_path: Path to .env file (default: configs/.env)
        """
        if env_path is None:
            env_path = Path("configs/.env")

        load_dotenv(dotenv_path=env_path, override=True)

        # === Browser Configuration ===
        self.headless: bool = os.getenv("HEADLESS", "1") not in _FALSE_VALUES
        self.user_agent: str = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)
        self.viewport_width: int = int(os.getenv("VIEWPORT_WIDTH", "1366"))
        self.viewport_height: int = int(os.getenv("VIEWPORT_HEIGHT", "768"))

        # === Search Configuration ===
        self.search_engine: str = os.getenv("SEARCH_ENGINE", "duckduckgo")
        self.nav_timeout_ms: int = int(os.getenv("NAV_TIMEOUT_MS", "60000"))
        self.click_timeout_ms: int = int(os.getenv("CLICK_TIMEOUT_MS", "30000"))
        self.max_result_pages: int = int(os.getenv("MAX_RESULT_PAGES", "10"))

        # === Scheduler Configuration ===
        self.queue_idle_delay: float = float(os.getenv("QUEUE_IDLE_DELAY", "1.0"))
        self.campaign_dwell_ms: int = int(os.getenv("CAMPAIGN_DWELL_MS", "3000"))

        # === Supabase Configuration ===
        self.supabase_enabled: bool = os.getenv("SUPABASE_ENABLED", "1") not in _FALSE_VALUES
        self.supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
        self.supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.traffic_table: str = os.getenv("SUPABASE_TRAFFIC_TABLE", "traffic_data")
        self.metadata_table: str = os.getenv("SUPABASE_METADATA_TABLE", "website_metadata")

        # === Error Log Configuration ===
        self.error_log_table: str = os.getenv("ERROR_LOG_TABLE", "error_logs")
        self.error_log_fallback_dir: Path = Path(os.getenv("ERROR_LOG_FALLBACK_DIR", "logs/errors"))

        # === Logging Configuration ===
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: Path = Path(os.getenv("LOG_DIR", "logs"))

    def validate(self) -> None:
        """
        Validate required configuration is present.

        Raises:
            ValueError: If required configuration is missing or invalid
        """
        errors = []

        if self.supabase_enabled:
            if not self.supabase_url:
                errors.append("SUPABASE_URL is required when Supabase is enabled")
            if not self.supabase_service_role_key:
                errors.append("SUPABASE_SERVICE_ROLE_KEY is required when Supabase is enabled")

        if self.nav_timeout_ms <= 0:
            errors.append(f"NAV_TIMEOUT_MS must be positive, got {self.nav_timeout_ms}")

        if self.click_timeout_ms <= 0:
            errors.append(f"CLICK_TIMEOUT_MS must be positive, got {self.click_timeout_ms}")

        if self.max_result_pages < 1:
            errors.append(f"MAX_RESULT_PAGES must be at least 1, got {self.max_result_pages}")

        if self.queue_idle_delay <= 0:
            errors.append(f"QUEUE_IDLE_DELAY must be positive, got {self.queue_idle_delay}")

        if self.campaign_dwell_ms < 0:
            errors.append(f"CAMPAIGN_DWELL_MS must be non-negative, got {self.campaign_dwell_ms}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"LOG_LEVEL must be a standard level name, got {self.log_level}")

        if self.viewport_width <= 0 or self.viewport_height <= 0:
            errors.append(
                f"Viewport must be positive, got {self.viewport_width}x{self.viewport_height}"
            )

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    def __repr__(self) -> str:
        """Return string representation of config (without secrets)."""
        return (
            f"Config(\n"
            f"  search_engine={self.search_engine},\n"
            f"  headless={self.headless},\n"
            f"  supabase_enabled={self.supabase_enabled},\n"
            f"  supabase_url={self.supabase_url or 'NOT SET'},\n"
            f"  supabase_service_role_key={'***' if self.supabase_service_role_key else 'NOT SET'},\n"
            f"  max_result_pages={self.max_result_pages},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )


# Global configuration instance (lazy-loaded)
_config: Optional[Config] = None


def get_config(env_path: Optional[Path] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        env_path: Optional path to .env file (only used on first call)

    Returns:
        Global Config instance
    """
    global _config
    if _config is None:
        _config = Config(env_path=env_path)
    return _config


def validate_config(env_path: Optional[Path] = None) -> None:
    """
    Validate configuration and raise error if invalid.

    Called at worker startup to fail fast if configuration is incorrect.

    Raises:
        ValueError: If configuration is invalid
    """
    config = get_config(env_path=env_path)
    config.validate()
