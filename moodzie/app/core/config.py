from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/moodzie.db"


def normalize_database_url(raw_url: str | None) -> str:
    """Map plain postgres/sqlite URLs onto their async drivers.

    The parent directory of a file-backed SQLite database is created.
    """

    url = str(raw_url or DEFAULT_DATABASE_URL)
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    if url.startswith("sqlite+aiosqlite:///"):
        db_path = url.split(":///", maxsplit=1)[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return url


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        alias="DATABASE_URL",
    )
    log_file: Path = Field(default=Path("logs/moodzie.log"))
    admin_api_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    # Calendar-day math (streaks, stats windows) happens in this single zone
    timezone: str = Field(default="UTC", alias="APP_TIMEZONE")

    # Session tokens
    access_token_ttl_minutes: int = Field(default=60, alias="ACCESS_TOKEN_TTL_MIN")
    refresh_token_ttl_days: int = Field(default=30, alias="REFRESH_TOKEN_TTL_DAYS")
    password_reset_ttl_minutes: int = Field(default=10, alias="PASSWORD_RESET_TTL_MIN")

    # Request throttling
    throttle_limit: int = Field(default=30, alias="THROTTLE_LIMIT")
    throttle_ttl_seconds: int = Field(default=60, alias="THROTTLE_TTL")

    version: str = Field(default_factory=lambda: Settings._load_version())

    @staticmethod
    def _load_version() -> str:
        version_env = os.getenv("VERSION")
        if version_env:
            return version_env
        version_file = Path("VERSION")
        if version_file.exists():
            return version_file.read_text(encoding="utf-8").strip()
        return "0.0.0"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Path | str) -> Path:
        path = Path(value)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("timezone", mode="before")
    @classmethod
    def _validate_timezone(cls, value: str | None) -> str:
        if not value:
            return "UTC"
        try:
            ZoneInfo(str(value))
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return str(value)

    @field_validator(
        "access_token_ttl_minutes",
        "refresh_token_ttl_days",
        "password_reset_ttl_minutes",
        mode="before",
    )
    @classmethod
    def _validate_ttl(cls, value: int | str | None) -> int:
        if value is None:
            return 1
        return max(int(value), 1)

    @field_validator("database_url", mode="before")
    @classmethod
    def _validate_database_url(cls, value: str | None) -> str:
        return normalize_database_url(value)


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()
