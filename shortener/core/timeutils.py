"""
Time helpers.

Timestamps are stored as naive UTC datetimes (SQLite keeps no offset), so
everything that compares against "now" goes through utcnow().
"""

from datetime import datetime, timezone
from typing import Optional

_INTERVALS = (
    ("year", 31536000),
    ("month", 2592000),
    ("week", 604800),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def time_since(then: datetime, now: Optional[datetime] = None) -> str:
    """
    Render the age of a timestamp, e.g. "3 minutes ago" or "just now".

    Only the largest whole unit is shown.
    """
    now = now or utcnow()
    seconds = int((now - then).total_seconds())

    for label, unit in _INTERVALS:
        count = seconds // unit
        if count >= 1:
            return f"{count} {label}{'s' if count > 1 else ''} ago"
    return "just now"


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a timestamp for display; missing values read "Never"."""
    if value is None:
        return "Never"
    return f"{value:%b} {value.day}, {value:%Y}, {value:%I:%M %p} UTC"
