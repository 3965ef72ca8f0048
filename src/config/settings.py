# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for backend connection, retry, staleness and
logging settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MINUTE_MS = 60 * 1000


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="METACACHE_",
        extra="ignore",
    )

    # === Backend ===
    backend_url: str = "http://localhost:8080/api"
    backend_token: str = ""
    backend_timeout_s: float = 10.0

    # === Retry ===
    retry_limit: int = 2
    retry_base_delay_ms: int = 0
    retry_backoff_factor: float = 2.0
    retry_max_delay_ms: int = 30_000

    # === Staleness windows ===
    stale_time_short_ms: int = 2 * MINUTE_MS
    stale_time_default_ms: int = 5 * MINUTE_MS
    stale_time_detail_ms: int = 10 * MINUTE_MS

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator(
        "retry_limit",
        "retry_base_delay_ms",
        "retry_max_delay_ms",
        "stale_time_short_ms",
        "stale_time_default_ms",
        "stale_time_detail_ms",
    )
    @classmethod
    def validate_non_negative(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("backend_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("backend_timeout_s must be > 0")
        return v

    @field_validator("backend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field rules for retry and staleness settings."""
        errors: list[str] = []

        if not (
            self.stale_time_short_ms
            <= self.stale_time_default_ms
            <= self.stale_time_detail_ms
        ):
            errors.append(
                "STALE_TIME_SHORT_MS <= STALE_TIME_DEFAULT_MS <= "
                "STALE_TIME_DETAIL_MS must hold"
            )

        if self.retry_backoff_factor < 1.0:
            errors.append("RETRY_BACKOFF_FACTOR must be >= 1.0")

        if self.retry_max_delay_ms < self.retry_base_delay_ms:
            errors.append("RETRY_MAX_DELAY_MS must be >= RETRY_BASE_DELAY_MS")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
