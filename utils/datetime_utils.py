"""
Timezone-aware datetime helpers.

Soft-delete markers and timestamps are always stored as UTC.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Current UTC time as a timezone-aware datetime.

    Used as the column default for timestamps and as the soft-delete marker.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime object is timezone-aware and in UTC.

    SQLite hands back naive datetimes even for timezone-aware columns; those
    are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
