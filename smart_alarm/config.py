"""
Smart Alarm — Centralized configuration.

Loads all settings from .env and validates them.
Per-user preferences (routine, buffer, addresses) live in the store, not here;
this module only covers deployment-level knobs like API keys and paths.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env from project root (one level up from smart_alarm/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite key-value store
    DATABASE_PATH: str = "data/smart_alarm.db"

    # Wall clock used by the CLI when no --now is given
    TIMEZONE: str = "Europe/Moscow"

    # Yandex geocoder (address → coordinates); empty → routes fall back to mock data
    YANDEX_API_KEY: str = ""

    # OpenWeatherMap, optional: morning clothing hints
    OPENWEATHER_API_KEY: str = ""

    # Upstream endpoints
    SCHEDULE_BASE_URL: str = "https://rasp.dmami.ru/site/group"
    OSRM_URL: str = "https://router.project-osrm.org"

    # Raw timetable cache lifetime
    SCHEDULE_CACHE_MAX_AGE_HOURS: int = 24

    HTTP_TIMEOUT_SECONDS: float = 10
    LOG_LEVEL: str = "INFO"

    @field_validator("SCHEDULE_CACHE_MAX_AGE_HOURS", mode="before")
    @classmethod
    def parse_max_age(cls, v: str | int) -> int:
        hours = int(v)
        if hours < 0:
            raise ValueError("must not be negative")
        return hours

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_log_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"


def _load_settings() -> Settings:
    """Load settings from environment, exiting on invalid values."""
    try:
        return Settings(
            DATABASE_PATH=os.getenv("DATABASE_PATH", "data/smart_alarm.db"),
            TIMEZONE=os.getenv("TIMEZONE", "Europe/Moscow"),
            YANDEX_API_KEY=os.getenv("YANDEX_API_KEY", ""),
            OPENWEATHER_API_KEY=os.getenv("OPENWEATHER_API_KEY", ""),
            SCHEDULE_BASE_URL=os.getenv(
                "SCHEDULE_BASE_URL", "https://rasp.dmami.ru/site/group",
            ),
            OSRM_URL=os.getenv("OSRM_URL", "https://router.project-osrm.org"),
            SCHEDULE_CACHE_MAX_AGE_HOURS=os.getenv("SCHEDULE_CACHE_MAX_AGE_HOURS", "24"),
            HTTP_TIMEOUT_SECONDS=os.getenv("HTTP_TIMEOUT_SECONDS", "10"),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        )
    except ValidationError as exc:
        print(f"ERROR: invalid configuration in .env:\n{exc}", file=sys.stderr)
        sys.exit(1)


# Singleton, imported by all other modules as:
#   from smart_alarm.config import settings
settings = _load_settings()
