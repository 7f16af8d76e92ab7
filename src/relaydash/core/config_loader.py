"""Configuration file loading utilities: JSONC parsing, env substitution, deep merge."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict

import commentjson

from ..util.log import Log

log = Log.create({"service": "config.loader"})


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries; ``override`` wins on conflicts."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def substitute_env_vars(text: str) -> str:
    """Replace ``{env:VAR}`` patterns with environment variable values."""
    return re.sub(r"\{env:([^}]+)\}", lambda match: os.environ.get(match.group(1), ""), text)


def load_json_file(filepath: str) -> Dict[str, Any]:
    """Load a JSON or JSONC file, returning ``{}`` on any I/O or parse error."""
    path = Path(filepath)
    if not path.exists():
        return {}

    try:
        text = substitute_env_vars(path.read_text(encoding="utf-8"))
        data = commentjson.loads(text)
    except (OSError, ValueError, UnicodeDecodeError, commentjson.JSONLibraryException) as e:
        log.error("failed to load config file", {"path": filepath, "error": str(e)})
        return {}

    if not isinstance(data, dict):
        log.error("config file is not an object", {"path": filepath})
        return {}
    return data
