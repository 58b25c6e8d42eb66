"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads for audit-gate happen here. No module should
call os.getenv() directly -- import get_settings() instead. The pure core
(parser, classifier, dates) never reads settings; main.py resolves them and
passes plain values in.

Environment variables use the AUDIT_GATE_ prefix, e.g.
  AUDIT_GATE_ALLOWLIST_PATH=config/allowlist.json
  AUDIT_GATE_EXPIRING_DAYS=14
  AUDIT_GATE_LOG_LEVEL=DEBUG

Singleton via lru_cache: get_settings() instantiates Settings once at first
call. In tests, call get_settings.cache_clear() after changing the
environment.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.dates import EXPIRING_SOON_DAYS, MAX_EXPIRING_DAYS
from core.models import ALLOWLIST_FILENAME

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Settings loaded from AUDIT_GATE_* environment variables and an optional .env file.

    All fields have defaults so Settings() works in CI without any setup.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_GATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    allowlist_path: str = ALLOWLIST_FILENAME
    audit_command: str = "npm audit --json"

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    # Passed to the classifier at the call site; never read inside the core.
    expiring_days: int = Field(default=EXPIRING_SOON_DAYS, ge=1, le=MAX_EXPIRING_DAYS)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    output_format: Literal["terminal", "json", "markdown"] = "terminal"
    log_level: str = "WARNING"
    no_color: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value!r}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton."""
    return Settings()
