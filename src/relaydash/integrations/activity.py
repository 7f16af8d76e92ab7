"""Activity feed derived from an overview snapshot.

The upstream snapshot carries no event history. The feed is a display
heuristic: each entry is dated at a fixed offset before ``now`` so the UI
has a plausible recency order. It is not an audit log and the offsets have
no meaning beyond ordering.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from .models import Activity, ActivityKind, Overview

_PLATFORM_SYNC = (
    ("slack", "Slack", timedelta(minutes=2)),
    ("teams", "Teams", timedelta(minutes=5)),
    ("whatsapp", "WhatsApp", timedelta(minutes=10)),
)
_WHATSAPP_SETUP_AGE = timedelta(hours=24)
_TOKEN_USAGE_AGE = timedelta(hours=1)


def derive_activity(overview: Optional[Overview], now: datetime) -> List[Activity]:
    """Build the activity feed for ``overview``, newest first."""
    if overview is None:
        return []

    activities: List[Activity] = []

    for platform, label, age in _PLATFORM_SYNC:
        if not overview.is_connected(platform):
            continue
        activities.append(
            Activity(
                id=f"{platform}-sync",
                kind=ActivityKind.SUCCESS,
                message=f"{label} integration active with {overview.users_of(platform)} users",
                occurred_at=now - age,
            )
        )

    if not overview.is_connected("whatsapp"):
        activities.append(
            Activity(
                id="whatsapp-setup",
                kind=ActivityKind.WARNING,
                message="WhatsApp integration setup required",
                occurred_at=now - _WHATSAPP_SETUP_AGE,
            )
        )

    messages_today = overview.token_usage.today.messages
    if messages_today > 0:
        activities.append(
            Activity(
                id="token-usage",
                kind=ActivityKind.INFO,
                message=f"{messages_today:,} messages processed today",
                occurred_at=now - _TOKEN_USAGE_AGE,
            )
        )

    # sorted() is stable, so equal timestamps keep insertion order.
    return sorted(activities, key=lambda item: item.occurred_at, reverse=True)
