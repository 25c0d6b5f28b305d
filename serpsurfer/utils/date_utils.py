"""
Date utility functions for serpsurfer.

Hit histograms are keyed by calendar day, records carry UTC timestamps.
"""

from datetime import datetime, timezone, date
from typing import Optional


def get_current_timestamp() -> str:
    """
    Get current timestamp in ISO format with UTC timezone.

    Example:
        >>> ts = get_current_timestamp()
        >>> '+' in ts
        True
    """
    return datetime.now(timezone.utc).isoformat()


def day_key(day: Optional[date] = None) -> str:
    """
    Return the ISO ``YYYY-MM-DD`` key used by the per-day hit histogram.

    Args:
        day: Date to format (default: today in UTC)

    Example:
        >>> day_key(date(2026, 10, 18))
        '2026-10-18'
    """
    if day is None:
        day = datetime.now(timezone.utc).date()
    return day.isoformat()
