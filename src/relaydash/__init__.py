"""relaydash - client-side state cache for the messaging integrations dashboard.

Fetches the integrations overview, caches it per session, and derives the
activity feed and display values the dashboard renders.
"""

__version__ = "0.1.0"

# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    """Lazy import module components."""
    if name in ("GlobalPath",):
        from . import core
        return getattr(core, name)
    if name == "Log":
        from .util import log
        return log.Log
    if name in ("ConfigManager", "Config"):
        from .core import config
        return getattr(config, name)
    if name in ("IntegrationsAPIClient", "ApiClientError"):
        from . import api_client
        return getattr(api_client, name)
    if name in ("IntegrationsStore", "IntegrationsProvider", "ClientEnvironment", "use_integrations"):
        from . import integrations
        return getattr(integrations, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    # Core
    "GlobalPath",
    "Log",
    "Config",
    "ConfigManager",
    # API
    "IntegrationsAPIClient",
    "ApiClientError",
    # Integrations
    "IntegrationsStore",
    "IntegrationsProvider",
    "ClientEnvironment",
    "use_integrations",
]
