import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .geometry import parse_hhmm

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    log_level: str = "INFO"
    timeline_start_hour: float = Field(default=6, ge=0, le=24)
    timeline_end_hour: float = Field(default=20, ge=0, le=24)
    late_grace_minutes: int = Field(default=10, ge=0, description="Minutes after scheduled start before a clock-in is late")
    min_segment_width: float = Field(default=0.5, ge=0, description="Smallest rendered segment width, in percent")
    default_scheduled_start: str = "08:00"
    default_scheduled_end: str = "17:00"
    max_shift_hours: float = Field(default=12, gt=0, description="Open shifts older than this are flagged for closing")

    model_config = SettingsConfigDict(env_prefix="TIMECARD_", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("default_scheduled_start", "default_scheduled_end")
    @classmethod
    def check_hhmm(cls, value: str) -> str:
        if parse_hhmm(value) is None:
            raise ValueError(f"Expected HH:MM, got {value!r}")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("TIMECARD_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None
