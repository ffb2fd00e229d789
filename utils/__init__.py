"""Utilities package for helper functions."""

from .datetime_utils import (
    get_local_tz,
    parse_canvas_datetime,
    to_local,
    format_local,
    days_until,
    due_status,
    is_due_within,
)
from .sync import sync_canvas_data

__all__ = [
    'get_local_tz',
    'parse_canvas_datetime',
    'to_local',
    'format_local',
    'days_until',
    'due_status',
    'is_due_within',
    'sync_canvas_data',
]
