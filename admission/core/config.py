"""Library configuration using Pydantic Settings.

Configuration is environment-aware:
- ADMISSION_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Limiter classes take plain constructor arguments. Settings are read only when
``create_rate_limiter()`` or ``configure_logging()`` is called without explicit
settings, so stray ``LIMITER_*``/``LOG_*`` variables never break an import.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from admission.core.errors import InvalidConfigurationError

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}


def _load_env_file(env: str) -> None:
    """Populate os.environ from .env.{env} when that file exists.

    Nested BaseSettings don't inherit env_file, so the values have to be in
    the process environment before any of them is built.
    """

    env_path = PROJECT_ROOT / ENV_FILE_MAP.get(env, ".env.development")
    if env_path.is_file():
        load_dotenv(env_path, override=True)


def _build_limiter_settings() -> "LimiterSettings":
    """Build limiter settings from environment."""

    return LimiterSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


class LimiterSettings(BaseSettings):
    """Rate limiter configuration."""

    algorithm: Literal["fixed_window", "leaky_bucket"] = Field(
        "fixed_window",
        description="Admission algorithm to build (fixed_window or leaky_bucket)",
    )
    threshold: int = Field(
        10,
        description="Maximum admissions per window, or bucket capacity",
        ge=1,
    )
    interval_ms: int = Field(
        1000,
        description="Window length or leak interval in milliseconds",
        ge=1,
    )
    leak_per_interval: int | None = Field(
        None,
        description="Units drained per leak interval (defaults to threshold)",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="LIMITER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field(
        "json",
        description="Log line format",
    )
    output: Literal["stdout", "file"] = Field(
        "stdout",
        description="Where log records are written",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (defaults to logs/admission.log)",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size; 0 disables rotation",
        ge=0,
    )
    backup_count: int = Field(
        3,
        description="Number of rotated log files to keep",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main settings container.

    Built on first use by ``get_settings()``, after the .env.{ADMISSION_ENV}
    file (if any) has been loaded.
    """

    env: str = Field("development", validation_alias="ADMISSION_ENV")
    limiter: LimiterSettings = Field(default_factory=_build_limiter_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment once.

    Returns:
        Settings: Resolved settings.

    Raises:
        InvalidConfigurationError: If an environment value is out of range.
    """

    _load_env_file(os.getenv("ADMISSION_ENV", "development"))
    try:
        return Settings()
    except ValidationError as exc:
        raise InvalidConfigurationError(
            code="limiter_invalid_settings",
            message=f"Invalid admission settings in environment: {exc.error_count()} error(s)",
            details={"context": {"errors": exc.errors(include_url=False)}},
        ) from exc
