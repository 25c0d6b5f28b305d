"""
Centralized error logging with Supabase integration.

This module provides a fail-safe error logger that:
- Logs errors to Supabase with structured schema
- Falls back to local JSONL files on database failures
- Uses Pydantic validation for type safety
- Follows singleton pattern for global access
"""

import json
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone

from serpsurfer.core.config import get_config
from serpsurfer.core.logging import get_logger
from serpsurfer.core.error_models import (
    ErrorRecord,
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
)

logger = get_logger(__name__)

_error_logger: Optional["ErrorLogger"] = None


class ErrorLogger:
    """
    Centralized error logger with database and file fallback.

    Usage:
        >>> error_logger = get_error_logger()
        >>> error_logger.log_error(
        ...     component=ErrorComponent.SEARCH,
        ...     stage=ErrorStage.HOMEPAGE_LOAD,
        ...     error_type=ErrorType.TIMEOUT,
        ...     domain="duckduckgo.com",
        ...     message="Homepage navigation timeout after 60s",
        ...     metadata={"timeout_ms": 60000}
        ... )
    """

    def __init__(
        self,
        client: Any = None,
        table: Optional[str] = None,
        fallback_dir: Optional[Path] = None,
    ):
        """
        Initialize error logger.

        Args:
            client: Pre-built Supabase client (created from config when None)
            table: Error table name (default: config ERROR_LOG_TABLE)
            fallback_dir: Directory for JSONL fallback files
        """
        config = get_config()
        self._table = table or config.error_log_table
        self._fallback_dir = Path(fallback_dir or config.error_log_fallback_dir)
        self._fallback_dir.mkdir(exist_ok=True, parents=True)

        self._client = client
        self._db_available = client is not None
        if client is None:
            self._init_database()

    def _init_database(self) -> None:
        """Initialize Supabase client for error logging."""
        config = get_config()
        if not config.supabase_enabled:
            return

        if not config.supabase_url or not config.supabase_service_role_key:
            logger.warning("Error logging: Supabase credentials missing, using file fallback")
            return

        try:
            from supabase import create_client

            self._client = create_client(config.supabase_url, config.supabase_service_role_key)
            self._db_available = True
            logger.info("Error logging initialized with Supabase")
        except Exception as e:
            logger.warning(f"Error logging: Database init failed ({e}), using file fallback")

    def log_error(
        self,
        component: ErrorComponent,
        stage: str,
        error_type: ErrorType,
        domain: str,
        message: str,
        url: Optional[str] = None,
        user_id: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log an error record.

        Never raises; falls back to file logging if the database write fails.

        Returns:
            True if logged successfully, False otherwise
        """
        try:
            record = ErrorRecord(
                component=component,
                stage=stage,
                error_type=error_type,
                severity=severity,
                domain=domain,
                url=url,
                user_id=user_id,
                message=message,
                metadata=metadata or {},
            )
            return self._write(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original error: {message}")
            return False

    def log_exception(
        self,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        domain: str,
        url: Optional[str] = None,
        user_id: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log an exception with automatic classification.

        Convenience wrapper around ErrorRecord.from_exception().

        Returns:
            True if logged successfully, False otherwise
        """
        try:
            record = ErrorRecord.from_exception(
                exc=exc,
                component=component,
                stage=stage,
                domain=domain,
                url=url,
                user_id=user_id,
                severity=severity,
                error_type=error_type,
                metadata=metadata,
            )
            return self._write(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original exception: {type(exc).__name__}")
            return False

    def _write(self, record: ErrorRecord) -> bool:
        if self._db_available and self._client:
            return self._write_to_database(record)
        return self._write_to_file(record)

    def _write_to_database(self, record: ErrorRecord) -> bool:
        """Write error record to Supabase."""
        try:
            self._client.table(self._table).insert(record.model_dump()).execute()
            return True
        except Exception as e:
            logger.warning(f"Database error write failed: {e}, falling back to file")
            return self._write_to_file(record)

    def _write_to_file(self, record: ErrorRecord) -> bool:
        """Append error record to the dated local JSONL file."""
        try:
            date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
            file_path = self._fallback_dir / f"errors_{date_str}.jsonl"

            with open(file_path, "a", encoding="utf-8") as f:
                json.dump(record.model_dump(), f)
                f.write("\n")

            return True
        except Exception as e:
            logger.error(f"File error write failed: {e}")
            return False


def get_error_logger() -> ErrorLogger:
    """
    Get the global ErrorLogger instance.

    Returns:
        Global ErrorLogger singleton
    """
    global _error_logger
    if _error_logger is None:
        _error_logger = ErrorLogger()
    return _error_logger
