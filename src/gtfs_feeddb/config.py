"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Feed database settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./gtfs.db",
        validation_alias=AliasChoices("DATABASE_URL", "GTFS_DATABASE_URL"),
    )
    statement_timeout_ms: Optional[int] = Field(default=None, ge=1)
    sqlite_busy_timeout_sec: float = Field(default=30.0, ge=0)

    # Bulk loading
    bulk_load_enabled: bool = True
    bulk_load_threshold: int = Field(
        default=100,
        ge=0,
        validation_alias=AliasChoices("BULK_LOAD_THRESHOLD", "GTFS_BULK_LOAD_THRESHOLD"),
    )

    # Sort/rebuild maintenance
    rebuild_lock_table: bool = True
    rebuild_allow_non_atomic: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
