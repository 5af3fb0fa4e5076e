"""Service settings, read from ``ROOMSCHED_*`` environment variables."""

from __future__ import annotations

from datetime import timedelta, tzinfo
from functools import lru_cache

from dateutil import tz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from roomsched.services.conflicts import DEFAULT_SESSION_MINUTES


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ROOMSCHED_")

    # Duration assumed for sessions stored without an end time
    default_session_minutes: int = Field(default=DEFAULT_SESSION_MINUTES, gt=0)

    # Timezone used for day boundaries and for naive timestamps
    timezone: str = "UTC"

    log_level: str = "INFO"
    seed_demo_data: bool = False

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        if tz.gettz(v) is None:
            raise ValueError(f"unknown timezone: {v}")
        return v

    @property
    def default_duration(self) -> timedelta:
        return timedelta(minutes=self.default_session_minutes)

    @property
    def zone(self) -> tzinfo:
        return tz.gettz(self.timezone)


@lru_cache
def get_settings() -> Settings:
    return Settings()
