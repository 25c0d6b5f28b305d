"""
Shared utility functions for serpsurfer.
"""

from serpsurfer.utils.date_utils import day_key, get_current_timestamp

__all__ = [
    "day_key",
    "get_current_timestamp",
]
