from __future__ import annotations

import math
from datetime import datetime, timezone, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import os

from constants import DUE_STATUS_OVERDUE, DUE_STATUS_TODAY, DUE_SOON_DAYS


def get_local_tz():
    """
    Resolve the local timezone to use for display.
    Priority:
      1) TIMEZONE env var (IANA tz name like 'America/New_York')
      2) System local timezone via datetime.now().astimezone().tzinfo
    """
    tz_env = os.getenv("TIMEZONE")
    if tz_env:
        try:
            return ZoneInfo(tz_env)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    # Fallback to system local timezone
    return datetime.now().astimezone().tzinfo or timezone.utc


def parse_canvas_datetime(value: str) -> datetime:
    """
    Parse Canvas ISO8601 datetime strings into timezone-aware datetimes.
    Canvas typically returns UTC with 'Z'. Example: '2025-10-01T03:59:00Z'.
    """
    if not value:
        raise ValueError("Empty datetime string")
    if not isinstance(value, str):
        raise ValueError(f"Expected a datetime string, got {type(value).__name__}")
    # Normalize trailing Z to +00:00 for fromisoformat
    normalized = value.replace("Z", "+00:00")
    dt = datetime.fromisoformat(normalized)
    # If naive, assume UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_local(dt_or_str: datetime | str) -> datetime:
    """
    Convert a UTC timestamp (datetime or ISO string) to local timezone datetime.
    If a string is provided, it will be parsed via parse_canvas_datetime first.
    """
    if isinstance(dt_or_str, str):
        dt = parse_canvas_datetime(dt_or_str)
    else:
        dt = dt_or_str
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(get_local_tz())


def format_local(dt_or_str: datetime | str, fmt: str = "%b %d, %Y, %I:%M %p") -> str:
    """Format a UTC datetime (or ISO string) in the local timezone using fmt."""
    return to_local(dt_or_str).strftime(fmt)


def days_until(due: datetime | str, now: Optional[datetime] = None) -> int:
    """Whole days until `due`, rounded up. Negative once the due time has passed."""
    due_dt = parse_canvas_datetime(due) if isinstance(due, str) else due
    if due_dt.tzinfo is None:
        due_dt = due_dt.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.ceil((due_dt - now).total_seconds() / 86400)


def due_status(due: Optional[datetime | str], now: Optional[datetime] = None) -> Tuple[str, str]:
    """
    Describe how close an assignment is to its due date.

    Returns (label, urgency) where urgency is one of
    'none', 'overdue', 'today', 'soon', 'later'.
    """
    if not due:
        return "No due date", "none"

    days = days_until(due, now)
    if days < 0:
        return DUE_STATUS_OVERDUE, "overdue"
    if days == 0:
        return DUE_STATUS_TODAY, "today"
    unit = "day" if days == 1 else "days"
    if days <= DUE_SOON_DAYS:
        return f"Due in {days} {unit}", "soon"
    return f"Due in {days} {unit}", "later"


def is_due_within(due: Optional[str], window: timedelta, now: Optional[datetime] = None) -> bool:
    """True when `due` falls between now and now + window."""
    if not due:
        return False
    now = now or datetime.now(timezone.utc)
    due_dt = parse_canvas_datetime(due)
    return now <= due_dt <= now + window
