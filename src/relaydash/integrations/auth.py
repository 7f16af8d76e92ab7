"""Authentication-failure classification and cleanup."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Optional

from .environment import ClientEnvironment
from ..core.config_schema import AuthConfig
from ..util.log import Log

log = Log.create({"service": "integrations.auth"})

AUTH_REQUIRED_MESSAGE = "Authentication required"


def _status(value: Any) -> Optional[int]:
    if isinstance(value, Mapping):
        code = value.get("statusCode", value.get("status_code", value.get("status")))
    else:
        code = getattr(value, "status_code", None)
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    if isinstance(code, str) and code.isdigit():
        return int(code)
    return None


def is_auth_error(error: Any) -> bool:
    """True when ``error`` carries HTTP 401, top level or on its response.

    ``ApiClientError`` exposes ``status_code`` directly;
    ``httpx.HTTPStatusError`` nests it under ``response.status_code``.
    """
    if error is None:
        return False
    if _status(error) == 401:
        return True
    if isinstance(error, Mapping):
        response = error.get("response")
    else:
        response = getattr(error, "response", None)
    return response is not None and _status(response) == 401


def _structured_message(error: Any) -> Optional[str]:
    for attr in ("data", "payload"):
        body = error.get(attr) if isinstance(error, Mapping) else getattr(error, attr, None)
        if isinstance(body, Mapping):
            message = body.get("message")
            if isinstance(message, str) and message.strip():
                return message
    return None


def extract_error_message(error: Any, fallback: str) -> str:
    """Most specific message available: server message, then error text, then fallback."""
    message = _structured_message(error)
    if message:
        return message
    if isinstance(error, Mapping):
        text = error.get("message")
        if isinstance(text, str) and text.strip():
            return text
    elif error is not None:
        text = str(error)
        if text.strip():
            return text
    return fallback


class AuthFailureHandler:
    """Clears credentials and schedules the login redirect on a 401.

    Only one redirect is pending at a time; further auth failures while it
    is pending repeat the credential cleanup but do not queue another
    navigation.
    """

    def __init__(self, environment: ClientEnvironment, config: Optional[AuthConfig] = None) -> None:
        self._env = environment
        self._config = config or AuthConfig()
        self._pending: Optional[asyncio.TimerHandle] = None

    @property
    def redirect_pending(self) -> bool:
        return self._pending is not None

    def handle(self, error: Any) -> bool:
        """Run the auth-failure side effects; return False if ``error`` is not a 401."""
        if not is_auth_error(error):
            return False

        log.warn("authentication failed, clearing credentials")
        if self._env.is_client:
            self._env.local_storage.remove(self._config.user_key)
            self._env.local_storage.remove(self._config.token_key)
            self._schedule_redirect()
        self._env.cookies.remove(self._config.token_key)
        return True

    def _schedule_redirect(self) -> None:
        if self._pending is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._redirect()
            return
        self._pending = loop.call_later(self._config.redirect_delay, self._redirect)

    def _redirect(self) -> None:
        self._pending = None
        log.info("redirecting to login", {"path": self._config.login_path})
        self._env.navigator.navigate(self._config.login_path)

    def cancel(self) -> None:
        """Drop a pending redirect."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
