"""
@file_name: timezone.py
@date: 2026-10-02
@description: Timezone utility module

All stored times are UTC. MySQL DATETIME columns come back naive, so values read
from the database pass through ensure_utc() before they reach the models.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get the current UTC time (with timezone info)

    Used instead of datetime.now() so stored times are always UTC.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive datetime, convert an aware one to UTC"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_db_datetime(dt: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC datetime for MySQL DATETIME columns"""
    if dt is None:
        return None
    return ensure_utc(dt).replace(tzinfo=None)
