"""
Logging setup shared by the CLI and the campaign worker.

Every module logs through ``get_logger(__name__)``; the process calls
``setup_logging`` once at startup.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime


DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# The Supabase client logs every HTTP request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str] = None,
    console: bool = True,
    log_dir: str = "logs",
) -> logging.Logger:
    """
    Route serpsurfer logs to stdout and a dated file.

    Args:
        level: Log level name
        log_file: Explicit log file (default: <log_dir>/serpsurfer_YYYYMMDD.log)
        console: Whether to log to stdout
        log_dir: Directory for the dated default log file

    Returns:
        Configured root logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
    else:
        log_path = Path(log_dir) / f"serpsurfer_{datetime.now().strftime('%Y%m%d')}.log"
    log_path.parent.mkdir(exist_ok=True, parents=True)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # keep request chatter out unless debugging
    third_party_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    root_logger.info(f"Logging initialized - Level: {level.upper()}, File: {log_path}")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
