from __future__ import annotations

from typing import Any

import httpx

from .types import OverviewEnvelope

DEFAULT_OVERVIEW_PATH = "/api/integrations/overview"


class ApiClientError(RuntimeError):
    """Raised when an API call returns a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: str,
        payload: Any | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
        self.path = path


class IntegrationsAPIClient:
    """HTTP client for the integrations dashboard API."""

    def __init__(
        self,
        *,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
        cookies: httpx.Cookies | None = None,
        overview_path: str = DEFAULT_OVERVIEW_PATH,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
            headers=headers or None,
            cookies=cookies,
        )
        if client is not None and headers:
            self._client.headers.update(headers)
        self._overview_path = overview_path

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookie jar shared by every request made through this client."""
        return self._client.cookies

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self._client.request(method, path, headers=headers)

        self._raise_for_status(response)
        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            return {"value": response.text}

    @staticmethod
    def _extract_error_message(payload: Any, fallback: str) -> str:
        if isinstance(payload, dict):
            message = payload.get("message")
            if isinstance(message, str) and message.strip():
                return message
            err = payload.get("error")
            if isinstance(err, dict):
                message = err.get("message")
                if isinstance(message, str) and message.strip():
                    return message
            if isinstance(err, str) and err.strip():
                return err
        return fallback

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        payload: Any | None
        try:
            payload = response.json()
        except ValueError:
            payload = response.text

        message = self._extract_error_message(
            payload,
            f"HTTP {response.status_code} for {response.request.method} {response.request.url.path}",
        )
        raise ApiClientError(
            status_code=response.status_code,
            message=message,
            payload=payload,
            path=response.request.url.path,
        )

    async def get_overview(self, headers: dict[str, str] | None = None) -> OverviewEnvelope:
        """Fetch the overview envelope ``{status, data, message}``.

        The envelope is returned as received; callers decide what a
        non-``success`` status means.
        """
        result = await self._request_json(
            "GET",
            self._overview_path,
            headers=headers,
        )
        return result if isinstance(result, dict) else {}
