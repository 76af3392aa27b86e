"""Environment configuration and validation.

This module defines strongly-typed settings loaded from environment variables (optionally via a
local `.env` file). The planner itself is pure; settings only choose the timezone used as the
default "now" for date windows and the process log level.
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    timezone: str = Field(default="UTC", alias="PLANNER_TIMEZONE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate that the timezone is a known IANA name.

        Local calendar days (tonight, weekend, weekday windows) are computed in this zone, so an
        unknown name is rejected at startup rather than silently falling back to UTC.
        """

        name = value.strip()
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value!r}") from exc
        return name

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value!r}")
        return level

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        # Raising here is fine: caller can decide how to handle startup errors.
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
