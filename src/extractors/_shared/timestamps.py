"""
Timestamp conversion utilities for browser extractors.

These are PURE FUNCTIONS with no side effects.

Formats supported:
- Cocoa: Seconds since 2001-01-01 (Safari History.db, bookmark dates)
- Unix: Seconds since 1970-01-01 (normalized Downloads.plist dates)
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import Optional

COCOA_EPOCH_DIFF = 978307200     # Seconds between 1970-01-01 and 2001-01-01
COCOA_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)


def cocoa_to_datetime(cocoa_time: Optional[float]) -> Optional[datetime]:
    """
    Convert Cocoa timestamp to datetime.

    Cocoa timestamps are seconds since January 1, 2001 00:00:00 UTC.
    This is NSDate's reference date.

    Examples:
        >>> cocoa_to_datetime(0)
        datetime.datetime(2001, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if cocoa_time is None:
        return None
    try:
        return datetime.fromtimestamp(cocoa_time + COCOA_EPOCH_DIFF, tz=timezone.utc)
    except (ValueError, OSError, OverflowError):
        return None


def cocoa_to_iso(cocoa_time: Optional[float]) -> Optional[str]:
    """Convert Cocoa timestamp to ISO 8601 string."""
    dt = cocoa_to_datetime(cocoa_time)
    return dt.isoformat() if dt else None


def datetime_to_cocoa(value: datetime) -> float:
    """
    Convert a datetime to Cocoa seconds.

    Naive datetimes are taken to be UTC (plistlib decodes dates that way).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - COCOA_EPOCH).total_seconds()


def datetime_to_unix_seconds(value: Optional[datetime]) -> int:
    """
    Convert a datetime to whole Unix epoch seconds, clamped at zero.

    Naive datetimes are taken to be UTC. ``None`` maps to 0.

    Examples:
        >>> datetime_to_unix_seconds(datetime(2022, 6, 26, 18, 0, 17))
        1656266417
    """
    if value is None:
        return 0
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return max(0, calendar.timegm(value.utctimetuple()))


def unix_to_iso(seconds: Optional[int]) -> Optional[str]:
    """Convert Unix seconds to ISO 8601 string (None for 0/None)."""
    if not seconds:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
    except (ValueError, OSError, OverflowError):
        return None
