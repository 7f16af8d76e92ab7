"""Integrations overview store.

Holds the cached overview snapshot with its loading/error flags, decides
when to refetch, and derives the activity feed after each successful
fetch. One store belongs to one logical session; ``IntegrationsProvider``
scopes it through a context variable instead of a module global.

Overlapping ``fetch_overview`` calls are not deduplicated unless
``cache.single_flight`` is enabled: both requests go out and whichever
response lands last wins. ``is_loading`` is advisory for callers.
"""

from __future__ import annotations

import asyncio
import copy
from contextvars import ContextVar
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import ValidationError

from .activity import derive_activity
from .auth import AUTH_REQUIRED_MESSAGE, AuthFailureHandler, extract_error_message
from .credentials import CookieCredentialStore, auth_headers
from .environment import ClientEnvironment
from .errors import UpstreamError
from .models import (
    Activity,
    CONNECTED,
    FetchResult,
    IntegrationSummary,
    Overview,
    OverviewState,
    TokenUsagePeriod,
)
from .scheduler import AutoRefresh
from .staleness import is_stale
from ..api_client import IntegrationsAPIClient
from ..api_client.types import OverviewEnvelope
from ..core.config import Config, ConfigManager
from ..util.error import format_error
from ..util.log import Log

log = Log.create({"service": "integrations.store"})

FETCH_FAILED_MESSAGE = "Failed to fetch integrations overview"

_DEFAULT_DETAILS: Dict[str, Dict[str, Any]] = {
    "whatsapp": {"phoneNumber": None, "status": False},
    "slack": {"teamName": None, "status": "inactive"},
    "teams": {"status": "inactive", "serviceUrl": None},
}

# name, platform, icon, text color, background color
_UI_CARDS = (
    ("Slack", "slack", "i-mdi:slack", "text-purple-400", "bg-purple-500/20"),
    ("Teams", "teams", "i-mdi:microsoft-teams", "text-blue-400", "bg-blue-500/20"),
    ("WhatsApp", "whatsapp", "i-mdi:whatsapp", "text-green-400", "bg-green-500/20"),
)


class OverviewSource(Protocol):
    async def get_overview(self, headers: dict[str, str] | None = None) -> OverviewEnvelope: ...


class StoreEvent:
    """Listener keys emitted by IntegrationsStore."""

    OVERVIEW_UPDATED = "overview.updated"
    ACTIVITY_UPDATED = "activity.updated"
    LOADING_CHANGED = "loading.changed"
    ERROR_CHANGED = "error.changed"
    CLEARED = "overview.cleared"


class IntegrationsStore:
    """Cache and fetch coordinator for the integrations overview."""

    def __init__(
        self,
        api_client: OverviewSource,
        environment: Optional[ClientEnvironment] = None,
        config: Optional[Config] = None,
    ) -> None:
        self._api = api_client
        self._env = environment or ClientEnvironment()
        self._config = config or Config()
        self._state = OverviewState()
        self._listeners: Dict[str, List[Callable[[Any], None]]] = {}
        self._auth = AuthFailureHandler(self._env, self._config.auth)
        self._inflight: Optional[asyncio.Task[FetchResult]] = None
        self._auto_refresh: Optional[AutoRefresh] = None
        self._owns_api_client = False

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        environment: Optional[ClientEnvironment] = None,
    ) -> "IntegrationsStore":
        """Build a store with its own API client sharing the environment's cookie jar."""
        config = config or ConfigManager.get()
        environment = environment or ClientEnvironment()
        client = IntegrationsAPIClient(
            base_url=config.api.base_url,
            timeout=config.api.timeout,
            cookies=environment.cookies.cookies,
            overview_path=config.api.overview_path,
        )
        # The client copies the jar it is given; point the store at the live one.
        environment.cookies = CookieCredentialStore(client.cookies)
        store = cls(client, environment=environment, config=config)
        store._owns_api_client = True
        return store

    # -- Read accessors --

    @property
    def environment(self) -> ClientEnvironment:
        return self._env

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self._config.cache.ttl)

    @property
    def overview(self) -> Optional[Overview]:
        """Copy of the cached snapshot, or None before the first fetch."""
        if self._state.overview is None:
            return None
        return self._state.overview.model_copy(deep=True)

    @property
    def is_loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def last_fetched(self) -> Optional[datetime]:
        return self._state.last_fetched

    @property
    def total_users(self) -> int:
        if self._state.overview is None:
            return 0
        return self._state.overview.user_counts.total or 0

    @property
    def whatsapp_users(self) -> int:
        return self._users("whatsapp")

    @property
    def slack_users(self) -> int:
        return self._users("slack")

    @property
    def teams_users(self) -> int:
        return self._users("teams")

    def _users(self, platform: str) -> int:
        if self._state.overview is None:
            return 0
        return self._state.overview.users_of(platform)

    @property
    def active_integrations_count(self) -> int:
        if self._state.overview is None:
            return 0
        statuses = self._state.overview.integration_status.values()
        return sum(1 for status in statuses if status == CONNECTED)

    def integration_status(self, platform: str) -> str:
        """Status string for ``platform``; ``disconnected`` when unknown."""
        if self._state.overview is None:
            return "disconnected"
        return self._state.overview.status_of(platform)

    @property
    def token_usage_today(self) -> TokenUsagePeriod:
        if self._state.overview is None:
            return TokenUsagePeriod()
        return self._state.overview.token_usage.today.model_copy()

    @property
    def token_usage_all_time(self) -> TokenUsagePeriod:
        if self._state.overview is None:
            return TokenUsagePeriod()
        return self._state.overview.token_usage.all_time.model_copy()

    def integration_details(self, platform: str) -> Optional[Dict[str, Any]]:
        """Pass-through detail blob, or the placeholder for known platforms."""
        details = None
        if self._state.overview is not None:
            details = self._state.overview.integration_details.get(platform)
        if details is None:
            details = _DEFAULT_DETAILS.get(platform)
        return copy.deepcopy(details)

    @property
    def whatsapp_details(self) -> Dict[str, Any]:
        return self.integration_details("whatsapp")

    @property
    def slack_details(self) -> Dict[str, Any]:
        return self.integration_details("slack")

    @property
    def teams_details(self) -> Dict[str, Any]:
        return self.integration_details("teams")

    @property
    def integrations_for_ui(self) -> List[IntegrationSummary]:
        overview = self._state.overview
        if overview is None:
            return []

        cards = [
            IntegrationSummary(
                name=name,
                users=overview.users_of(platform),
                connected=overview.is_connected(platform),
                icon=icon,
                color=color,
                bg_color=bg_color,
                path=f"/admin/integrations/{platform}",
                details=copy.deepcopy(overview.integration_details.get(platform)),
            )
            for name, platform, icon, color, bg_color in _UI_CARDS
        ]
        # iMessage has no backend yet; the card is a placeholder.
        cards.append(
            IntegrationSummary(
                name="iMessage",
                users=0,
                connected=False,
                icon="i-heroicons:chat-bubble-left-ellipsis",
                color="text-gray-400",
                bg_color="bg-gray-500/20",
                path="/admin/integrations/imessage",
                details=None,
            )
        )
        return cards

    @property
    def recent_activity(self) -> List[Activity]:
        return list(self._state.recent_activity)

    @property
    def needs_refresh(self) -> bool:
        """True when the snapshot is missing or older than the TTL."""
        return is_stale(self._state.last_fetched, self._env.now(), self.ttl)

    # -- Listeners --

    def on_change(self, key: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register ``callback`` for ``key``; returns an unsubscribe function."""
        self._listeners.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners and callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def _notify(self, key: str, value: Any) -> None:
        for listener in list(self._listeners.get(key, ())):
            try:
                listener(value)
            except Exception as e:
                log.error("store listener error", {"key": key, "error": str(e)})

    def _set_loading(self, loading: bool) -> None:
        self._state.loading = loading
        self._notify("loading", loading)
        self._notify(StoreEvent.LOADING_CHANGED, loading)

    def _set_error(self, error: Optional[str]) -> None:
        self._state.error = error
        self._notify("error", error)
        self._notify(StoreEvent.ERROR_CHANGED, error)

    # -- Actions --

    def _request_headers(self) -> Dict[str, str]:
        return auth_headers(self._env.resolve_token(self._config.auth.token_key))

    async def fetch_overview(self, force_refresh: bool = False) -> FetchResult:
        """Return the cached snapshot while fresh, otherwise fetch a new one.

        Never raises for fetch failures; they are reported on the result.
        """
        if not force_refresh and self._state.overview is not None and not self.needs_refresh:
            log.debug("overview cache fresh, skipping fetch")
            return FetchResult(success=True, data=self.overview)

        if not self._config.cache.single_flight:
            return await self._fetch()

        task = self._inflight
        if task is None or task.done():
            task = asyncio.ensure_future(self._fetch())
            self._inflight = task
            task.add_done_callback(self._clear_inflight)
        else:
            log.debug("joining in-flight overview fetch")
        return await asyncio.shield(task)

    def _clear_inflight(self, task: "asyncio.Task[FetchResult]") -> None:
        if self._inflight is task:
            self._inflight = None

    async def _fetch(self) -> FetchResult:
        self._set_loading(True)
        self._set_error(None)
        try:
            try:
                with log.time("overview request"):
                    envelope = await self._api.get_overview(headers=self._request_headers())
                status = envelope.get("status")
                if status != "success":
                    raise UpstreamError(envelope.get("message"), status=status, payload=envelope)
                overview = Overview.model_validate(envelope.get("data") or {})
            except asyncio.CancelledError:
                raise
            except Exception as e:
                return self._fail(e)

            self._state.overview = overview
            self._state.last_fetched = self._env.now()
            self.generate_recent_activity()
            log.info("overview fetched", {"active": self.active_integrations_count})
            self._notify("overview", self.overview)
            self._notify(StoreEvent.OVERVIEW_UPDATED, self.overview)
            return FetchResult(success=True, data=self.overview, message=envelope.get("message"))
        finally:
            self._set_loading(False)

    def _fail(self, error: Exception) -> FetchResult:
        if self._auth.handle(error):
            return FetchResult(success=False, message=AUTH_REQUIRED_MESSAGE)

        if isinstance(error, ValidationError):
            message = FETCH_FAILED_MESSAGE
            log.warn("overview snapshot rejected", {"errors": error.errors(include_url=False)})
        else:
            message = extract_error_message(error, FETCH_FAILED_MESSAGE)
            log.warn("overview fetch failed", {"error": format_error(error) or message})
        self._set_error(message)
        return FetchResult(success=False, message=message)

    def generate_recent_activity(self) -> None:
        """Replace the activity feed with one derived from the current snapshot."""
        if self._state.overview is None:
            return
        self._state.recent_activity = derive_activity(self._state.overview, self._env.now())
        self._notify("activity", self.recent_activity)
        self._notify(StoreEvent.ACTIVITY_UPDATED, self.recent_activity)

    async def refresh_overview(self) -> FetchResult:
        return await self.fetch_overview(force_refresh=True)

    def clear_overview(self) -> None:
        """Reset snapshot, activity, error and fetch time."""
        self._state.overview = None
        self._state.recent_activity = []
        self._state.last_fetched = None
        self._notify("overview", None)
        self._notify(StoreEvent.OVERVIEW_UPDATED, None)
        self._notify("activity", [])
        self._notify(StoreEvent.ACTIVITY_UPDATED, [])
        self._set_error(None)
        self._notify(StoreEvent.CLEARED, None)

    def start_auto_refresh(self, interval: Optional[float] = None) -> Optional[AutoRefresh]:
        """Start periodic refresh; returns None where timers are unavailable.

        A running timer with the same interval is returned as is; a different
        interval replaces it.

        Args:
            interval: Seconds between ticks, defaults to
                ``cache.auto_refresh_interval``.
        """
        interval = interval if interval is not None else self._config.cache.auto_refresh_interval
        current = self._auto_refresh
        if current is not None and current.running and current.interval == interval:
            return current

        scheduler = AutoRefresh(self, interval)
        if not scheduler.start():
            return None
        if current is not None and current.cancel() is not None:
            log.info("auto refresh interval changed", {"from": current.interval, "to": interval})
        self._auto_refresh = scheduler
        return scheduler

    async def stop_auto_refresh(self) -> None:
        scheduler = self._auto_refresh
        self._auto_refresh = None
        if scheduler is not None:
            await scheduler.stop()

    async def aclose(self) -> None:
        """Tear down timers and, when owned, the API client."""
        await self.stop_auto_refresh()
        self._auth.cancel()
        if self._owns_api_client and hasattr(self._api, "aclose"):
            await self._api.aclose()


_integrations_context: ContextVar[Optional[IntegrationsStore]] = ContextVar(
    "integrations_context",
    default=None,
)


class IntegrationsProvider:
    """Scopes one IntegrationsStore per session context."""

    @classmethod
    def get(cls) -> IntegrationsStore:
        """Current store, created from the loaded config on first use."""
        store = _integrations_context.get()
        if store is None:
            store = IntegrationsStore.from_config()
            _integrations_context.set(store)
        return store

    @classmethod
    def provide(cls, store: IntegrationsStore) -> IntegrationsStore:
        _integrations_context.set(store)
        return store

    @classmethod
    def reset(cls) -> None:
        _integrations_context.set(None)


def use_integrations() -> IntegrationsStore:
    """Hook to access the session's integrations store."""
    return IntegrationsProvider.get()
