"""Integrations cache exceptions."""

from __future__ import annotations

from typing import Any


class UpstreamError(Exception):
    """Raised when the overview endpoint answers with a non-success status."""

    def __init__(self, message: str | None, status: str | None = None, payload: Any | None = None):
        self.status = status
        self.payload = payload
        super().__init__(message or "")
