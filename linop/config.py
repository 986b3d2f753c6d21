"""Runtime settings for operator construction."""

import os
from dataclasses import dataclass
from functools import lru_cache

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """
    Library-wide defaults.

    Attributes:
        debug_checks: Verify operand shapes and destination dtypes on every
            apply. Off by default; results are identical either way.
    """

    debug_checks: bool = False

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from ``LINOP_*`` environment variables."""
        environ = os.environ if environ is None else environ
        flag = environ.get("LINOP_DEBUG_CHECKS", "")
        return cls(debug_checks=flag.strip().lower() in _TRUTHY)


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Process-wide settings, read once from the environment."""
    return Settings.from_env()
