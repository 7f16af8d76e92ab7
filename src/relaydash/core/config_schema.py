"""Configuration schema: Pydantic models for relaydash config files."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApiConfig(BaseModel):
    """Upstream API endpoint settings."""
    base_url: str = Field("http://127.0.0.1:3000", alias="baseURL")
    overview_path: str = Field("/api/integrations/overview", alias="overviewPath")
    timeout: float = Field(30.0, gt=0)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class CacheConfig(BaseModel):
    """Overview cache policy. Durations are in seconds."""
    ttl: float = Field(300.0, ge=0)
    auto_refresh_interval: float = Field(300.0, gt=0, alias="autoRefreshInterval")
    single_flight: bool = Field(False, alias="singleFlight")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class AuthConfig(BaseModel):
    """Credential keys and the login redirect."""
    login_path: str = Field("/login", alias="loginPath")
    redirect_delay: float = Field(0.5, ge=0, alias="redirectDelay")
    token_key: str = Field("authToken", alias="tokenKey")
    user_key: str = Field("authUser", alias="userKey")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("login_path")
    @classmethod
    def _absolute_login_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("loginPath must start with '/'")
        return value


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Optional[str] = None
    format: Optional[Literal["kv", "json", "pretty"]] = None
    console: Optional[bool] = None
    file: Optional[bool] = None
    dev_file: Optional[bool] = Field(None, alias="devFile")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class Config(BaseModel):
    """Main configuration schema."""
    schema_: Optional[str] = Field(None, alias="$schema")
    api: ApiConfig = Field(default_factory=ApiConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: Optional[LoggingConfig] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
