"""Configuration management.

Loads and merges configuration from, in increasing precedence:
1. Global config (``config.json``, ``relaydash.json``, ``relaydash.jsonc``
   in the platform config directory)
2. ``RELAYDASH_CONFIG_CONTENT`` (inline JSON)
3. Explicit overrides passed to ``ConfigManager.load``
"""

import json
import os
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .config_loader import deep_merge, load_json_file
from .config_schema import ApiConfig, AuthConfig, CacheConfig, Config, LoggingConfig
from .global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "config"})

__all__ = [
    "ApiConfig",
    "AuthConfig",
    "CacheConfig",
    "Config",
    "ConfigError",
    "ConfigManager",
    "LoggingConfig",
]

CONFIG_FILENAMES = ("config.json", "relaydash.json", "relaydash.jsonc")


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Config error in {path}: {message}")


_config_var: ContextVar["ConfigManager"] = ContextVar("_config_var")


class ConfigManager:
    """Configuration management.

    Instance-based with ContextVar for scoping. Class methods delegate to
    the current instance.
    """

    def __init__(self) -> None:
        self._cache: Optional[Config] = None
        self._sources: list[str] = []

    @classmethod
    def current(cls) -> "ConfigManager":
        try:
            return _config_var.get()
        except LookupError:
            instance = cls()
            _config_var.set(instance)
            return instance

    @classmethod
    def provide(cls, instance: "ConfigManager") -> Token["ConfigManager"]:
        return _config_var.set(instance)

    @classmethod
    def restore(cls, token: Token["ConfigManager"]) -> None:
        _config_var.reset(token)

    @classmethod
    def reset(cls) -> None:
        """Drop the cached configuration."""
        inst = cls.current()
        inst._cache = None
        inst._sources = []

    @classmethod
    def load(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        return cls.current()._load(overrides)

    @classmethod
    def get(cls) -> Config:
        inst = cls.current()
        if inst._cache is None:
            return inst._load()
        return inst._cache

    @classmethod
    def sources(cls) -> list[str]:
        """Files and variables that contributed to the current config."""
        return cls.current()._sources.copy()

    def _load(self, overrides: Optional[Dict[str, Any]] = None) -> Config:
        result: Dict[str, Any] = {}
        sources: list[str] = []

        config_dir = GlobalPath.config()
        for filename in CONFIG_FILENAMES:
            filepath = os.path.join(config_dir, filename)
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info("loaded global config", {"path": filepath})

        env_config = os.environ.get("RELAYDASH_CONFIG_CONTENT")
        if env_config:
            try:
                data = json.loads(env_config)
            except json.JSONDecodeError:
                log.error("failed to parse RELAYDASH_CONFIG_CONTENT")
            else:
                if isinstance(data, dict):
                    result = deep_merge(result, data)
                    sources.append("RELAYDASH_CONFIG_CONTENT")
                    log.info("loaded config from RELAYDASH_CONFIG_CONTENT")

        if overrides:
            result = deep_merge(result, overrides)
            sources.append("overrides")

        try:
            config = Config.model_validate(result)
        except ValidationError as e:
            origin = sources[-1] if sources else "defaults"
            raise ConfigError(origin, str(e)) from e

        self._sources = sources
        self._cache = config
        return config
