"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/coaching.db")

    DEFAULT_TOTAL_QUESTIONS: int = Field(default=15, ge=1)
    DEFAULT_LANGUAGE: str = "en"

    PROVIDERS_CONFIG: str = "config/providers.yaml"
    PROVIDER_TIMEOUT_S: float = Field(default=30.0, gt=0)
    CIRCUIT_FAILURE_THRESHOLD: int = Field(default=3, ge=1)
    CIRCUIT_RECOVERY_SECONDS: float = Field(default=300.0, ge=0)
    CACHE_TTL_SECONDS: float = Field(default=600.0, ge=0)
    CACHE_MAX_ENTRIES: int = Field(default=256, ge=1)
    GATEWAY_MAX_WORKERS: int = Field(default=8, ge=1)

    SESSION_TIMEOUT_MINUTES: int = 30
    ABANDONED_SESSION_HOURS: int = 24
    CLEANUP_INTERVAL_MINUTES: int = 15
    ARCHIVE_AFTER_DAYS: int = 90

    BRIEF_ANSWER_WORDS: int = 30
    DETAILED_ANSWER_WORDS: int = 80

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
