"""Client-side cache for the messaging integrations overview."""

from .activity import derive_activity
from .auth import AuthFailureHandler, extract_error_message, is_auth_error
from .credentials import (
    CookieCredentialStore,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
    auth_headers,
)
from .environment import ClientEnvironment, Navigator, RecordingNavigator
from .errors import UpstreamError
from .format import format_cost, format_count, format_token_usage
from .models import (
    Activity,
    ActivityKind,
    FetchResult,
    IntegrationSummary,
    Overview,
    TokenUsagePeriod,
)
from .scheduler import AutoRefresh
from .staleness import DEFAULT_TTL, is_stale
from .store import IntegrationsProvider, IntegrationsStore, StoreEvent, use_integrations

__all__ = [
    "Activity",
    "ActivityKind",
    "AuthFailureHandler",
    "AutoRefresh",
    "ClientEnvironment",
    "CookieCredentialStore",
    "CredentialStore",
    "DEFAULT_TTL",
    "FetchResult",
    "FileCredentialStore",
    "IntegrationSummary",
    "IntegrationsProvider",
    "IntegrationsStore",
    "MemoryCredentialStore",
    "Navigator",
    "Overview",
    "RecordingNavigator",
    "StoreEvent",
    "TokenUsagePeriod",
    "UpstreamError",
    "auth_headers",
    "derive_activity",
    "extract_error_message",
    "format_cost",
    "format_count",
    "format_token_usage",
    "is_auth_error",
    "is_stale",
    "use_integrations",
]
