"""Backend capabilities: bulk copy, transactional DDL and table locking."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, text

from gtfs_feeddb.exceptions import NotSupportedError
from gtfs_feeddb.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class Backend:
    """Capabilities of a dialect without any native bulk channel.

    Rebuilding a table is not transactional here, so maintenance refuses to
    run unless the caller accepts a non-atomic swap.
    """

    name = "generic"
    supports_bulk_copy = False
    supports_transactional_ddl = False
    supports_table_lock = False

    async def copy_rows(
        self, session: AsyncSession, table: Table, rows: list[dict[str, Any]]
    ) -> None:
        """Stream ``rows`` into ``table`` as one operation."""
        raise NotSupportedError(f"Backend {self.name!r} has no bulk copy channel")

    async def lock_table(self, session: AsyncSession, table: Table) -> None:
        """Take an exclusive lock on ``table`` for the current transaction."""
        raise NotSupportedError(f"Backend {self.name!r} cannot lock tables")


class SqliteBackend(Backend):
    """SQLite: one executemany INSERT inside the open transaction.

    Writers are already serialized by the database file lock.
    """

    name = "sqlite"
    supports_bulk_copy = True
    supports_transactional_ddl = True

    async def copy_rows(
        self, session: AsyncSession, table: Table, rows: list[dict[str, Any]]
    ) -> None:
        await session.execute(insert(table), rows)


class PostgresBackend(Backend):
    """PostgreSQL: binary COPY through the asyncpg driver connection."""

    name = "postgresql"
    supports_transactional_ddl = True
    supports_table_lock = True

    def __init__(self, driver: str = "asyncpg") -> None:
        self.driver = driver
        self.supports_bulk_copy = driver == "asyncpg"

    async def copy_rows(
        self, session: AsyncSession, table: Table, rows: list[dict[str, Any]]
    ) -> None:
        if not self.supports_bulk_copy:
            raise NotSupportedError(f"Binary COPY needs asyncpg, not {self.driver}")
        if not rows:
            return
        columns = list(rows[0].keys())
        connection = await session.connection()
        raw = await connection.get_raw_connection()
        driver_connection = raw.driver_connection
        await driver_connection.copy_records_to_table(
            table.name,
            records=[tuple(row[col] for col in columns) for row in rows],
            columns=columns,
            schema_name=table.schema,
        )

    async def lock_table(self, session: AsyncSession, table: Table) -> None:
        connection = await session.connection()
        quoted = connection.dialect.identifier_preparer.format_table(table)
        await session.execute(text(f"LOCK TABLE {quoted} IN ACCESS EXCLUSIVE MODE"))


def get_backend(dialect: Dialect) -> Backend:
    """Pick the backend for a SQLAlchemy dialect."""
    if dialect.name == "sqlite":
        return SqliteBackend()
    if dialect.name == "postgresql":
        return PostgresBackend(driver=dialect.driver)
    logger.warning(
        "No native backend for dialect, bulk copy and atomic rebuild disabled",
        dialect=dialect.name,
    )
    return Backend()
