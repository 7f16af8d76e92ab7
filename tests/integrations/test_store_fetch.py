import asyncio
from datetime import timedelta

import httpx
import pytest

from relaydash.api_client import ApiClientError, IntegrationsAPIClient
from relaydash.core.config_schema import AuthConfig, CacheConfig, Config
from relaydash.integrations import (
    ClientEnvironment,
    CookieCredentialStore,
    IntegrationsStore,
    MemoryCredentialStore,
    RecordingNavigator,
    StoreEvent,
)
from relaydash.util.log import Log, LogLevel
from tests.helpers import FakeClock, StubOverviewAPI, T0, client_env, success_envelope


def _store(api: StubOverviewAPI, clock: FakeClock | None = None, **config) -> IntegrationsStore:
    return IntegrationsStore(api, environment=client_env(clock), config=Config(**config))


@pytest.mark.anyio
async def test_successful_fetch_populates_cache() -> None:
    clock = FakeClock()
    api = StubOverviewAPI(success_envelope())
    store = _store(api, clock)

    result = await store.fetch_overview()

    assert result.success is True
    assert result.message == "ok"
    assert result.data is not None
    assert result.data.user_counts.slack == 12
    assert store.last_fetched == T0
    assert store.error is None
    assert store.is_loading is False
    assert [item.id for item in store.recent_activity] == [
        "slack-sync",
        "teams-sync",
        "token-usage",
        "whatsapp-setup",
    ]


@pytest.mark.anyio
async def test_fresh_cache_skips_network() -> None:
    clock = FakeClock()
    api = StubOverviewAPI(success_envelope())
    store = _store(api, clock)

    await store.fetch_overview()
    clock.advance(minutes=4)
    first = await store.fetch_overview()
    second = await store.fetch_overview(False)

    assert len(api.calls) == 1
    assert first.success and second.success
    assert second.data is not None
    assert second.message is None


@pytest.mark.anyio
async def test_stale_cache_refetches() -> None:
    clock = FakeClock()
    api = StubOverviewAPI(success_envelope())
    store = _store(api, clock)

    await store.fetch_overview()
    clock.advance(minutes=5)
    await store.fetch_overview()

    assert len(api.calls) == 2
    assert store.last_fetched == clock.value


@pytest.mark.anyio
async def test_forced_refresh_always_hits_network() -> None:
    api = StubOverviewAPI(success_envelope())
    store = _store(api)

    await store.fetch_overview()
    await store.fetch_overview(force_refresh=True)
    await store.refresh_overview()

    assert len(api.calls) == 3


@pytest.mark.anyio
async def test_activity_log_is_replaced_not_merged() -> None:
    clock = FakeClock()
    api = StubOverviewAPI(
        success_envelope(slack="connected", teams="connected", messages_today=10),
        success_envelope(slack="disconnected", teams="disconnected", whatsapp="connected", messages_today=0),
    )
    store = _store(api, clock)

    await store.fetch_overview()
    clock.advance(minutes=1)
    await store.refresh_overview()

    assert [item.id for item in store.recent_activity] == ["whatsapp-sync"]
    assert store.recent_activity[0].occurred_at == clock.value - timedelta(minutes=10)


@pytest.mark.anyio
async def test_logical_failure_sets_error_and_keeps_cache() -> None:
    clock = FakeClock()
    api = StubOverviewAPI(
        success_envelope(),
        {"status": "error", "message": "Integrations service unavailable"},
    )
    store = _store(api, clock)

    await store.fetch_overview()
    activity_before = store.recent_activity
    clock.advance(minutes=6)
    result = await store.fetch_overview()

    assert result.success is False
    assert result.message == "Integrations service unavailable"
    assert store.error == "Integrations service unavailable"
    assert store.last_fetched == T0
    assert store.overview is not None
    assert store.recent_activity == activity_before
    assert store.is_loading is False


@pytest.mark.anyio
async def test_logical_failure_without_message_uses_fallback() -> None:
    store = _store(StubOverviewAPI({"status": "error"}))

    result = await store.fetch_overview()

    assert result.message == "Failed to fetch integrations overview"
    assert store.error == "Failed to fetch integrations overview"


@pytest.mark.anyio
async def test_transport_error_message_chain() -> None:
    api = StubOverviewAPI(
        ApiClientError(status_code=502, message="HTTP 502", payload={"message": "upstream timeout"}),
        RuntimeError("connection reset"),
    )
    store = _store(api)

    structured = await store.fetch_overview(force_refresh=True)
    generic = await store.fetch_overview(force_refresh=True)

    assert structured.message == "upstream timeout"
    assert generic.message == "connection reset"
    assert store.error == "connection reset"


@pytest.mark.anyio
async def test_malformed_snapshot_is_reported_as_error() -> None:
    api = StubOverviewAPI({"status": "success", "data": {"userCounts": {"slack": -1}}})
    store = _store(api)

    result = await store.fetch_overview()

    assert result.success is False
    assert result.message == "Failed to fetch integrations overview"
    assert store.error == "Failed to fetch integrations overview"
    assert store.overview is None
    assert store.last_fetched is None


@pytest.mark.anyio
async def test_null_fields_in_snapshot_fall_back_to_defaults() -> None:
    envelope = success_envelope()
    envelope["data"]["integrationStatus"]["whatsapp"] = None
    envelope["data"]["userCounts"]["teams"] = None
    envelope["data"]["tokenUsage"]["today"] = None
    envelope["data"]["integrationDetails"] = None
    store = _store(StubOverviewAPI(envelope))

    result = await store.fetch_overview()

    assert result.success is True
    assert store.error is None
    assert store.integration_status("whatsapp") == "disconnected"
    assert store.teams_users == 0
    assert store.slack_users == 12
    assert store.token_usage_today.messages == 0
    assert store.slack_details == {"teamName": None, "status": "inactive"}


@pytest.mark.anyio
async def test_error_is_cleared_when_next_fetch_starts() -> None:
    api = StubOverviewAPI(RuntimeError("down"), success_envelope())
    store = _store(api)
    seen: list = []

    await store.fetch_overview()
    store.on_change("error", seen.append)
    await store.fetch_overview()

    assert seen == [None]
    assert store.error is None


@pytest.mark.anyio
async def test_auth_failure_redirects_without_inline_error() -> None:
    request = httpx.Request("GET", "http://dash.test/api/integrations/overview")
    nested_401 = httpx.HTTPStatusError(
        "unauthorized",
        request=request,
        response=httpx.Response(401, request=request),
    )
    navigator = RecordingNavigator()
    cookies = CookieCredentialStore()
    cookies.set("authToken", "stale")
    env = ClientEnvironment(
        local_storage=MemoryCredentialStore({"authToken": "stale", "authUser": "{}"}),
        cookies=cookies,
        navigator=navigator,
        clock=FakeClock(),
    )
    api = StubOverviewAPI(nested_401)
    store = IntegrationsStore(api, environment=env, config=Config(auth=AuthConfig(redirect_delay=0)))

    result = await store.fetch_overview()
    await asyncio.sleep(0.01)

    assert result.success is False
    assert result.message == "Authentication required"
    assert store.error is None
    assert store.is_loading is False
    assert api.calls == [{"Authorization": "Bearer stale"}]
    assert env.local_storage.get("authToken") is None
    assert env.cookies.get("authToken") is None
    assert navigator.visited == ["/login"]


@pytest.mark.anyio
async def test_loading_flag_brackets_the_request() -> None:
    api = StubOverviewAPI(success_envelope())
    store = _store(api)
    transitions: list[bool] = []
    store.on_change(StoreEvent.LOADING_CHANGED, transitions.append)

    api.gate = asyncio.Event()
    task = asyncio.ensure_future(store.fetch_overview())
    await asyncio.sleep(0)
    assert store.is_loading is True

    api.gate.set()
    await task

    assert transitions == [True, False]
    assert store.is_loading is False


@pytest.mark.anyio
async def test_loading_reset_when_fetch_is_cancelled() -> None:
    api = StubOverviewAPI(success_envelope())
    api.gate = asyncio.Event()
    store = _store(api)

    task = asyncio.ensure_future(store.fetch_overview())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.is_loading is False


@pytest.mark.anyio
async def test_overlapping_fetches_both_hit_network_and_last_write_wins() -> None:
    api = StubOverviewAPI(
        success_envelope(users={"slack": 1}),
        success_envelope(users={"slack": 2}),
    )
    api.gate = asyncio.Event()
    store = _store(api)

    first = asyncio.ensure_future(store.fetch_overview(force_refresh=True))
    second = asyncio.ensure_future(store.fetch_overview(force_refresh=True))
    await asyncio.sleep(0)
    api.gate.set()
    await asyncio.gather(first, second)

    assert len(api.calls) == 2
    assert store.slack_users == 2


@pytest.mark.anyio
async def test_single_flight_shares_one_request() -> None:
    api = StubOverviewAPI(success_envelope())
    api.gate = asyncio.Event()
    store = _store(api, cache=CacheConfig(single_flight=True))

    first = asyncio.ensure_future(store.fetch_overview(force_refresh=True))
    second = asyncio.ensure_future(store.fetch_overview(force_refresh=True))
    await asyncio.sleep(0)
    api.gate.set()
    results = await asyncio.gather(first, second)

    assert len(api.calls) == 1
    assert all(result.success for result in results)

    await store.refresh_overview()
    assert len(api.calls) == 2


@pytest.mark.anyio
async def test_store_over_http_sends_cookie_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=success_envelope())

    env = client_env()
    env.cookies.set("authToken", "cookie-token")
    client = IntegrationsAPIClient(
        base_url="http://dash.test",
        transport=httpx.MockTransport(handler),
    )
    store = IntegrationsStore(client, environment=env)

    result = await store.fetch_overview()
    await client.aclose()

    assert result.success is True
    assert seen[0].url.path == "/api/integrations/overview"
    assert seen[0].headers["Authorization"] == "Bearer cookie-token"


@pytest.mark.anyio
async def test_overview_request_is_timed(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.INFO, console=True, file=False)
    store = _store(StubOverviewAPI(success_envelope(), ApiClientError(status_code=502, message="bad gateway")))

    await store.fetch_overview()
    await store.refresh_overview()
    Log.configure(level=LogLevel.INFO, console=False, file=False)

    timed = [line for line in capsys.readouterr().err.splitlines() if 'msg="overview request"' in line]
    assert len(timed) == 2
    assert "status=completed" in timed[0] and "duration=" in timed[0]
    assert "status=failed" in timed[1] and 'error="bad gateway"' in timed[1]
