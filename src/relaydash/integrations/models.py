"""Data models for the integrations overview cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CONNECTED = "connected"
DISCONNECTED = "disconnected"


def _drop_nulls(value: Any) -> Any:
    """Treat explicit nulls from the server as missing so field defaults apply."""
    if not isinstance(value, dict):
        return value
    return {key: item for key, item in value.items() if item is not None}


class UserCounts(BaseModel):
    """Users per platform."""
    whatsapp: int = Field(0, ge=0)
    slack: int = Field(0, ge=0)
    teams: int = Field(0, ge=0)
    total: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _defaults(cls, value: Any) -> Any:
        return _drop_nulls(value)


class TokenUsagePeriod(BaseModel):
    """Message, token and cost totals for one period."""
    messages: int = Field(0, ge=0)
    tokens: int = Field(0, ge=0)
    cost: float = Field(0.0, ge=0)

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _defaults(cls, value: Any) -> Any:
        return _drop_nulls(value)


class TokenUsage(BaseModel):
    today: TokenUsagePeriod = Field(default_factory=TokenUsagePeriod)
    all_time: TokenUsagePeriod = Field(default_factory=TokenUsagePeriod, alias="allTime")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _defaults(cls, value: Any) -> Any:
        return _drop_nulls(value)


class Overview(BaseModel):
    """Server-provided snapshot of integration status and usage.

    Null sections, counts and statuses fall back to their defaults (zero,
    ``disconnected``). ``integration_details`` is passed through untouched;
    the cache never interprets it.
    """
    user_counts: UserCounts = Field(default_factory=UserCounts, alias="userCounts")
    integration_status: Dict[str, str] = Field(default_factory=dict, alias="integrationStatus")
    token_usage: TokenUsage = Field(default_factory=TokenUsage, alias="tokenUsage")
    integration_details: Dict[str, Any] = Field(default_factory=dict, alias="integrationDetails")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _defaults(cls, value: Any) -> Any:
        return _drop_nulls(value)

    @field_validator("integration_status", mode="before")
    @classmethod
    def _null_status(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {platform: status or DISCONNECTED for platform, status in value.items()}

    def status_of(self, platform: str) -> str:
        return self.integration_status.get(platform) or DISCONNECTED

    def is_connected(self, platform: str) -> bool:
        return self.integration_status.get(platform) == CONNECTED

    def users_of(self, platform: str) -> int:
        return int(getattr(self.user_counts, platform, 0) or 0)


class ActivityKind(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Activity:
    """One entry of the derived activity feed."""
    id: str
    kind: ActivityKind
    message: str
    occurred_at: datetime

    @property
    def time(self) -> str:
        """ISO-8601 rendering of ``occurred_at``."""
        return self.occurred_at.isoformat()


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a fetch; errors are reported here instead of raised."""
    success: bool
    data: Optional[Overview] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class IntegrationSummary:
    """UI-ready record for one integration card."""
    name: str
    users: int
    connected: bool
    icon: str
    color: str
    bg_color: str
    path: str
    details: Optional[Dict[str, Any]] = None


@dataclass
class OverviewState:
    """Mutable cache state owned by an IntegrationsStore."""
    overview: Optional[Overview] = None
    recent_activity: List[Activity] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    last_fetched: Optional[datetime] = None
