"""Display formatters for token counts and costs."""

from __future__ import annotations

import math
from typing import Any


def _number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or number < 0:
        return 0.0
    return number


def format_count(value: Any) -> str:
    """Abbreviate a count: ``999``, ``1.5K``, ``2.5M``."""
    n = _number(value)
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1000:
        return f"{n / 1000:.1f}K"
    return str(int(n))


format_token_usage = format_count


def format_cost(value: Any) -> str:
    """Format a dollar amount: ``$2.5K``, ``$5.00``, ``$0.5000``."""
    c = _number(value)
    if c >= 1000:
        return f"${c / 1000:.1f}K"
    if c >= 1:
        return f"${c:.2f}"
    return f"${c:.4f}"
