"""Credential stores for the bearer token.

A client keeps its token in two places: a client-side key/value store
(the local-storage equivalent) and a cookie. The cookie is the fallback
when the client store is unavailable or empty.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional, Protocol

import httpx

from ..core.global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "integrations.credentials"})


class CredentialStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: Optional[str]) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryCredentialStore:
    """Credential store held in process memory."""

    def __init__(self, values: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self._values.pop(key, None)
            return
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class FileCredentialStore:
    """Credential store persisted as JSON under the platform state directory."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or Path(GlobalPath.state()) / "credentials.json"
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data
        self._data = {}
        try:
            if self._path.exists():
                with open(self._path, "r", encoding="utf-8") as f:
                    raw = json.load(f)
                if isinstance(raw, dict):
                    self._data = {str(k): str(v) for k, v in raw.items() if v is not None}
        except (OSError, ValueError) as e:
            log.warning("failed to load credentials", {"path": str(self._path), "error": str(e)})
        return self._data

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._load(), f, indent=2)
        except OSError as e:
            log.warning("failed to save credentials", {"path": str(self._path), "error": str(e)})

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self.remove(key)
            return
        self._load()[key] = value
        self._save()

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save()


class CookieCredentialStore:
    """Credential store backed by an ``httpx.Cookies`` jar.

    Sharing the jar with the API client keeps the cookie sent on requests
    and the value read here in sync.
    """

    def __init__(self, cookies: Optional[httpx.Cookies] = None) -> None:
        self.cookies = cookies if cookies is not None else httpx.Cookies()

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.cookies.get(key)
        except httpx.CookieConflict:
            log.warning("conflicting cookies for key", {"key": key})
            return None
        return value or None

    def set(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self.remove(key)
            return
        self.cookies.set(key, value)

    def remove(self, key: str) -> None:
        self.cookies.delete(key)


def auth_headers(token: Optional[str]) -> Dict[str, str]:
    """Authorization header for ``token``, or no headers at all."""
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}
