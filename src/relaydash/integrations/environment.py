"""Execution environment injected into the integrations store.

The store never probes globals to find out whether it runs in an
interactive client. Client-only capabilities (the local credential store,
timers, delayed redirects) are gated on ``ClientEnvironment.is_client``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from .credentials import CookieCredentialStore, CredentialStore, MemoryCredentialStore
from ..util.log import Log

log = Log.create({"service": "integrations.environment"})


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class RecordingNavigator:
    """Navigator that records requested routes for the host to act on."""

    def __init__(self) -> None:
        self.visited: List[str] = []

    @property
    def current(self) -> Optional[str]:
        return self.visited[-1] if self.visited else None

    def navigate(self, path: str) -> None:
        log.info("navigate", {"path": path})
        self.visited.append(path)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ClientEnvironment:
    """Capabilities available to the store in the current execution context."""

    is_client: bool = True
    local_storage: CredentialStore = field(default_factory=MemoryCredentialStore)
    cookies: CookieCredentialStore = field(default_factory=CookieCredentialStore)
    navigator: Navigator = field(default_factory=RecordingNavigator)
    clock: Callable[[], datetime] = utc_now

    @classmethod
    def server(cls, cookies: Optional[CookieCredentialStore] = None) -> "ClientEnvironment":
        """Environment for non-interactive rendering: cookies only."""
        return cls(is_client=False, cookies=cookies or CookieCredentialStore())

    def now(self) -> datetime:
        return self.clock()

    def resolve_token(self, key: str) -> Optional[str]:
        """Token from the client store, falling back to the cookie."""
        token: Optional[str] = None
        if self.is_client:
            token = self.local_storage.get(key)
        if not token:
            token = self.cookies.get(key)
        return token or None
