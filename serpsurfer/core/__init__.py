"""
Core utilities for serpsurfer.

This module contains shared utilities used across all components:
- Configuration management
- Structured logging
- Error logging and tracking
"""

from serpsurfer.core.logging import get_logger, setup_logging
from serpsurfer.core.config import get_config, validate_config, Config
from serpsurfer.core.error_logger import ErrorLogger, get_error_logger
from serpsurfer.core.error_models import (
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
    ErrorStage,
    ErrorRecord,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "get_config",
    "validate_config",
    "Config",
    "ErrorLogger",
    "get_error_logger",
    "ErrorComponent",
    "ErrorSeverity",
    "ErrorType",
    "ErrorStage",
    "ErrorRecord",
]
