"""Platform directories for relaydash.

``RELAYDASH_HOME`` relocates every directory under a single root, which is
how tests and portable installs keep state out of the user profile.
"""

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir, user_state_dir

APP_NAME = "relaydash"


class GlobalPath:
    """Directory lookups for config, state and logs."""

    @classmethod
    def _override(cls, name: str) -> str | None:
        root = os.environ.get("RELAYDASH_HOME")
        if not root:
            return None
        return str(Path(root) / name)

    @classmethod
    def data(cls) -> str:
        """Application data directory."""
        return cls._override("data") or user_data_dir(APP_NAME)

    @classmethod
    def log(cls) -> str:
        """Log file directory."""
        return str(Path(cls.data()) / "log")

    @classmethod
    def config(cls) -> str:
        """Configuration directory."""
        return cls._override("config") or user_config_dir(APP_NAME)

    @classmethod
    def state(cls) -> str:
        """Client-side state (credential store) directory."""
        return cls._override("state") or user_state_dir(APP_NAME)
