from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./practice.db"

    # Backend
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    APP_DEBUG: bool = True
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    SLOW_REQUEST_MS: float = 1000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)
    LOG_SQL: bool = False   # Enable SQLAlchemy query logging

    # Revision scheduling
    REVISION_INTERVALS_DAYS: list[int] = [1, 3, 7, 14, 30, 60]
    REVISION_PLATEAU_DAYS: int = 90

    # Analytics
    DEFAULT_TIMEZONE: str = "UTC"
    ACTIVITY_WINDOW_DAYS: int = 30
    NOTIFICATION_WINDOW_HOURS: int = 24
    RECENT_REVISIONS_LIMIT: int = 5

    @field_validator("REVISION_INTERVALS_DAYS")
    @classmethod
    def _intervals_positive(cls, v: list[int]) -> list[int]:
        if not v or any(days < 1 for days in v):
            raise ValueError("REVISION_INTERVALS_DAYS must be a non-empty list of positive day counts")
        return v

    @field_validator("REVISION_PLATEAU_DAYS", "ACTIVITY_WINDOW_DAYS", "NOTIFICATION_WINDOW_HOURS")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @property
    def is_production(self) -> bool:
        return not self.APP_DEBUG

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
