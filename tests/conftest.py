from collections.abc import Iterator
from pathlib import Path

import pytest

from relaydash.core.config import ConfigManager
from relaydash.integrations import IntegrationsProvider
from relaydash.util.log import Log


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def relaydash_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    home = tmp_path / "relaydash-home"
    monkeypatch.setenv("RELAYDASH_HOME", str(home))
    monkeypatch.delenv("RELAYDASH_CONFIG_CONTENT", raising=False)
    token = ConfigManager.provide(ConfigManager())
    try:
        yield home
    finally:
        ConfigManager.restore(token)
        IntegrationsProvider.reset()
        Log.close()
