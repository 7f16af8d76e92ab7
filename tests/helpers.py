"""Shared test helpers."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

from relaydash.integrations import ClientEnvironment, MemoryCredentialStore, RecordingNavigator

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.value = start

    def __call__(self) -> datetime:
        return self.value

    def advance(self, **kwargs: float) -> None:
        self.value += timedelta(**kwargs)


def overview_payload(
    *,
    slack: str = "connected",
    teams: str = "connected",
    whatsapp: str = "disconnected",
    messages_today: int = 120,
    users: dict[str, int] | None = None,
) -> dict[str, Any]:
    counts = {"whatsapp": 3, "slack": 12, "teams": 7, "total": 22}
    counts.update(users or {})
    return {
        "userCounts": counts,
        "integrationStatus": {"whatsapp": whatsapp, "slack": slack, "teams": teams},
        "tokenUsage": {
            "today": {"messages": messages_today, "tokens": 15400, "cost": 0.42},
            "allTime": {"messages": 90210, "tokens": 2_500_000, "cost": 2500.0},
        },
        "integrationDetails": {
            "whatsapp": {"phoneNumber": "+15550100", "status": True},
            "slack": {"teamName": "Acme", "status": "active"},
            "teams": {"status": "active", "serviceUrl": "https://smba.example.test"},
        },
    }


def success_envelope(**kwargs: Any) -> dict[str, Any]:
    return {"status": "success", "data": overview_payload(**kwargs), "message": "ok"}


class StubOverviewAPI:
    """In-memory overview source that records calls and replays queued outcomes.

    Each queued outcome is either an envelope dict or an exception to raise.
    The last outcome repeats once the queue is drained.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes) or [success_envelope()]
        self.calls: list[dict[str, str] | None] = []
        self.gate: asyncio.Event | None = None

    async def get_overview(self, headers: dict[str, str] | None = None) -> dict[str, Any]:
        self.calls.append(headers)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def client_env(clock: FakeClock | None = None, **kwargs: Any) -> ClientEnvironment:
    return ClientEnvironment(
        is_client=kwargs.pop("is_client", True),
        local_storage=kwargs.pop("local_storage", MemoryCredentialStore()),
        navigator=kwargs.pop("navigator", RecordingNavigator()),
        clock=clock or FakeClock(),
        **kwargs,
    )
