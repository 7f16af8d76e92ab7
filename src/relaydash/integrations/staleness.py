"""Staleness policy for the overview cache."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

DEFAULT_TTL = timedelta(minutes=5)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_stale(
    last_fetched_at: Optional[datetime],
    now: datetime,
    ttl: timedelta = DEFAULT_TTL,
) -> bool:
    """Return True when the cached snapshot warrants a refetch.

    A snapshot never fetched is stale. A ``last_fetched_at`` later than
    ``now`` (clock skew) counts as fresh.
    """
    if last_fetched_at is None:
        return True
    return _aware(now) - _aware(last_fetched_at) >= ttl
