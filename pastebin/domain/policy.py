from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Protocol


class ExpiringRecord(Protocol):
    expires_at: Optional[datetime]
    max_views: Optional[int]
    current_views: int


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_accessible(paste: ExpiringRecord, now: datetime) -> bool:
    """
    Return whether ``paste`` may still be served at ``now``.

    A paste is accessible while it has not reached ``expires_at`` and has
    views left. ``now`` always comes from the caller.
    """
    if paste.expires_at is not None and not as_utc(now) < as_utc(paste.expires_at):
        return False
    if paste.max_views is not None and paste.current_views >= paste.max_views:
        return False
    return True
