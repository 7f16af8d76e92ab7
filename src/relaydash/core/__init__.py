"""Core infrastructure modules."""

from .global_paths import GlobalPath

__all__ = ["GlobalPath"]

# Config and Log are imported from their modules to avoid circular imports:
#   from relaydash.core.config import ConfigManager
#   from relaydash.util.log import Log
