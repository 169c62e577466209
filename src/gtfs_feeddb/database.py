"""Async engine and session factory for the feed database."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from gtfs_feeddb.config import Settings, get_settings

if TYPE_CHECKING:
    from sqlalchemy.engine import URL


def create_engine(url: str | None = None, settings: Settings | None = None) -> AsyncEngine:
    """Build an async engine with per-backend connect arguments.

    SQLite engines get the pysqlite transaction hooks so DDL participates in
    transactions; in-memory SQLite is pinned to one connection.
    """
    settings = settings or get_settings()
    parsed = make_url(url or settings.database_url)
    backend = parsed.get_backend_name()

    kwargs: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    connect_args: dict[str, Any] = {}

    if backend == "sqlite":
        connect_args["timeout"] = settings.sqlite_busy_timeout_sec
        if _is_memory_sqlite(parsed):
            kwargs["poolclass"] = StaticPool
    elif backend == "postgresql":
        kwargs["pool_size"] = 5
        kwargs["max_overflow"] = 10
        if settings.statement_timeout_ms:
            timeout = str(settings.statement_timeout_ms)
            if parsed.get_driver_name() == "asyncpg":
                connect_args["server_settings"] = {"statement_timeout": timeout}
            else:
                connect_args["options"] = f"-c statement_timeout={timeout}"

    if connect_args:
        kwargs["connect_args"] = connect_args

    engine = create_async_engine(parsed, **kwargs)
    if backend == "sqlite":
        _enable_sqlite_transactional_ddl(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def _is_memory_sqlite(url: URL) -> bool:
    database = url.database or ""
    return database in ("", ":memory:") or url.query.get("mode") == "memory"


def _enable_sqlite_transactional_ddl(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so CREATE/DROP/ALTER are transactional.

    The sqlite3 driver otherwise only opens a transaction before DML, which
    leaves a table rebuild half applied when it fails.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:  # noqa: ARG001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")
