"""Runtime settings for the timeline service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DAYOF_",
        env_file=".env",
        extra="ignore",
    )

    app_title: str = "Day-of Timeline Service"
    log_level: str = "INFO"

    # Schedule limits
    max_schedule_days: int = Field(default=3, ge=1)
    change_log_limit: int = Field(default=500, ge=1)

    # Rendering
    default_locale: str = "de"
    min_gap_minutes: int = Field(default=30, ge=1)
    rows_per_page: int = Field(default=25, ge=1)


@lru_cache
def get_settings() -> Settings:
    return Settings()
