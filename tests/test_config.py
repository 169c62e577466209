"""Tests for configuration settings."""

import pytest
from pydantic import ValidationError

from gtfs_feeddb.config import Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("GTFS_DATABASE_URL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite+aiosqlite:///./gtfs.db"
        assert settings.bulk_load_enabled is True
        assert settings.bulk_load_threshold == 100
        assert settings.statement_timeout_ms is None
        assert settings.rebuild_lock_table is True
        assert settings.rebuild_allow_non_atomic is False

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://gtfs:gtfs@db/gtfs")
        monkeypatch.setenv("GTFS_BULK_LOAD_THRESHOLD", "5000")
        monkeypatch.setenv("STATEMENT_TIMEOUT_MS", "30000")
        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql+asyncpg://gtfs:gtfs@db/gtfs"
        assert settings.bulk_load_threshold == 5000
        assert settings.statement_timeout_ms == 30000

    def test_alternate_database_url_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("GTFS_DATABASE_URL", "sqlite+aiosqlite:///feeds.db")
        assert Settings(_env_file=None).database_url == "sqlite+aiosqlite:///feeds.db"

    def test_negative_threshold_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, bulk_load_threshold=-1)

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()
