"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from gtfs_feeddb.config import Settings, get_settings
from gtfs_feeddb.database import create_engine, create_session_factory
from gtfs_feeddb.services.feed_db import FeedStore

MEMORY_URL = "sqlite+aiosqlite://"


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """Settings are cached per process; tests that patch the env need a fresh copy."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, database_url=MEMORY_URL)


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine; one shared connection for the whole test."""
    engine = create_engine(MEMORY_URL, settings)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = create_session_factory(engine)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def store(session: AsyncSession, settings: Settings) -> FeedStore:
    """Feed store on an empty schema."""
    store = FeedStore(session, settings=settings)
    await store.ensure_schema()
    return store
