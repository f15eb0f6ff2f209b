"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from typing import Optional

DB_PATH_ENV = "AGENCYLEDGER_DB_PATH"
LOG_LEVEL_ENV = "AGENCYLEDGER_LOG_LEVEL"
WARNING_DAYS_ENV = "AGENCYLEDGER_DEADLINE_WARNING_DAYS"

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_DEADLINE_WARNING_DAYS = 3


@dataclass(frozen=True)
class Settings:
    """Process-wide settings."""

    database_path: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL
    deadline_warning_days: int = DEFAULT_DEADLINE_WARNING_DAYS


def load_settings() -> Settings:
    """Build Settings from AGENCYLEDGER_* environment variables.

    Raises:
        ValueError: If AGENCYLEDGER_DEADLINE_WARNING_DAYS is not a non-negative integer
    """
    raw_days = os.environ.get(WARNING_DAYS_ENV)
    warning_days = DEFAULT_DEADLINE_WARNING_DAYS
    if raw_days:
        try:
            warning_days = int(raw_days)
        except ValueError:
            raise ValueError(f"{WARNING_DAYS_ENV} must be an integer, got '{raw_days}'")
        if warning_days < 0:
            raise ValueError(f"{WARNING_DAYS_ENV} must not be negative")

    return Settings(
        database_path=os.environ.get(DB_PATH_ENV) or None,
        log_level=os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper(),
        deadline_warning_days=warning_days,
    )
