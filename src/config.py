"""Runtime configuration.

Values come from environment variables; command-line flags in main.py take
precedence over them.
"""

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


class Settings:
    """Process-level settings for the command-line entry point."""

    LOG_FORMAT: str = "%(levelname)s: %(name)s: %(message)s"

    @classmethod
    def log_level(cls) -> str:
        return os.getenv("PAYMENTS_ENGINE_LOG_LEVEL", "WARNING").strip().upper()


@dataclass(frozen=True)
class EngineConfig:
    # Deposits and withdrawals against a locked account are rejected unless disabled.
    reject_locked_account_activity: bool = True

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            reject_locked_account_activity=not _env_flag("PAYMENTS_ENGINE_ALLOW_LOCKED_ACTIVITY"),
        )
