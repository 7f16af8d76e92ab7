"""Error formatting utilities."""

import json
import traceback
from typing import Any


def format_error(error: Any) -> str | None:
    """Format known relaydash errors into a one-line message.

    Returns None for unrecognised errors so callers can fall back to
    format_unknown_error.
    """
    from ..api_client import ApiClientError
    from ..core.config import ConfigError
    from ..integrations.errors import UpstreamError

    if isinstance(error, ApiClientError):
        location = f" ({error.path})" if error.path else ""
        return f"HTTP {error.status_code}{location}: {error}"
    if isinstance(error, UpstreamError):
        return f"Upstream rejected request: {error}"
    if isinstance(error, ConfigError):
        return str(error)
    return None


def format_unknown_error(error: Any) -> str:
    """Render any error, including its traceback when one is attached."""
    if isinstance(error, BaseException):
        if error.__traceback__:
            return "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {error}"

    if isinstance(error, (dict, list)):
        try:
            return json.dumps(error, indent=2)
        except (TypeError, ValueError):
            return "Unexpected error (unserializable)"

    return str(error)
