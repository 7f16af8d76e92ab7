from __future__ import annotations

from typing import Any, TypedDict

JSONDict = dict[str, Any]


class TokenUsagePeriodPayload(TypedDict):
    messages: int
    tokens: int
    cost: float


class TokenUsagePayload(TypedDict):
    today: TokenUsagePeriodPayload
    allTime: TokenUsagePeriodPayload


class UserCountsPayload(TypedDict, total=False):
    whatsapp: int
    slack: int
    teams: int
    total: int


class OverviewPayload(TypedDict, total=False):
    userCounts: UserCountsPayload
    integrationStatus: dict[str, str]
    tokenUsage: TokenUsagePayload
    integrationDetails: dict[str, JSONDict]


class OverviewEnvelope(TypedDict, total=False):
    status: str
    data: OverviewPayload
    message: str
