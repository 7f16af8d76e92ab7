"""Runtime logging bootstrap helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.config import ConfigManager
from ..util.log import Log, LogFormat, LogLevel


@dataclass(frozen=True)
class LogSettings:
    level: LogLevel
    format: LogFormat
    console: bool
    file: bool
    dev_file: bool


def resolve_log_settings(
    *,
    level: Optional[str] = None,
    format: Optional[str] = None,
    console: Optional[bool] = None,
    file: Optional[bool] = None,
    dev_file: Optional[bool] = None,
) -> LogSettings:
    """Merge explicit arguments over the config file's ``logging`` section."""
    cfg = ConfigManager.get().logging

    lv = LogLevel.parse(level or (cfg.level if cfg else None))
    fm = LogFormat.parse(format or (cfg.format if cfg else None))

    if console is None:
        console = cfg.console if cfg and cfg.console is not None else False
    if file is None:
        file = cfg.file if cfg and cfg.file is not None else True
    if dev_file is None:
        dev_file = cfg.dev_file if cfg and cfg.dev_file is not None else False

    return LogSettings(level=lv, format=fm, console=console, file=file, dev_file=dev_file)


def bootstrap_logging(
    *,
    level: Optional[str] = None,
    format: Optional[str] = None,
    console: Optional[bool] = None,
    file: Optional[bool] = None,
    dev_file: Optional[bool] = None,
) -> LogSettings:
    """Resolve config and initialize the process logger."""
    settings = resolve_log_settings(
        level=level,
        format=format,
        console=console,
        file=file,
        dev_file=dev_file,
    )
    Log.configure(
        level=settings.level,
        format=settings.format,
        console=settings.console,
        file=settings.file,
        dev=settings.dev_file,
    )
    return settings
