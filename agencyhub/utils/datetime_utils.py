"""
Date/time helpers.

Storage: timestamps are stored in UTC; calendar dates (date_submitted,
date_completed, ...) are the UTC calendar day.
"""

from datetime import date, datetime, timezone


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.
    If dt is naive, we treat it as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def epoch_millis(dt: datetime | None = None) -> int:
    """
    Milliseconds since the epoch (used in storage keys).
    """
    return int(as_utc(dt or utc_now()).timestamp() * 1000)
