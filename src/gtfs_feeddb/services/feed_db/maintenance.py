"""Sort/rebuild maintenance: rewrite an entity table in sort-key order.

The table is rebuilt through a shadow copy (``<table>_sorted``): create the
shadow, copy every row in order, drop the original, rename the shadow and
recreate the indexes. On SQLite and PostgreSQL all of it runs in one
transaction. Elsewhere the swap is not atomic and the caller must take a
backup first; a crash between drop and rename leaves only the shadow, which
the next rebuild picks up and renames back.

Rebuilding is an offline operation: nothing else may read or write the table
while it runs.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, MetaData, Table, func, insert, inspect, select, text
from sqlalchemy.exc import SQLAlchemyError

from gtfs_feeddb.config import get_settings
from gtfs_feeddb.exceptions import MaintenanceError, NotSupportedError
from gtfs_feeddb.logging import get_logger
from gtfs_feeddb.services.feed_db.descriptors import descriptor_for_table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

    from gtfs_feeddb.services.feed_db.backends import Backend

logger = get_logger(__name__)

SHADOW_SUFFIX = "_sorted"


class TableRebuilder:
    """Rebuilds entity tables in a requested sort order."""

    def __init__(
        self,
        session: AsyncSession,
        backend: Backend,
        lock_table: bool | None = None,
        allow_non_atomic: bool | None = None,
    ) -> None:
        settings = get_settings()
        self._session = session
        self.backend = backend
        self.lock_table = lock_table if lock_table is not None else settings.rebuild_lock_table
        self.allow_non_atomic = (
            allow_non_atomic if allow_non_atomic is not None else settings.rebuild_allow_non_atomic
        )

    async def rebuild(
        self,
        table_name: str,
        order_by: Sequence[str] | None = None,
        *,
        allow_non_atomic: bool | None = None,
    ) -> int:
        """Rewrite ``table_name`` ordered by ``order_by`` (default: its sort key).

        Returns the number of rows in the rebuilt table.
        """
        descriptor = descriptor_for_table(table_name)
        source = descriptor.table
        order = descriptor.order_columns(tuple(order_by) if order_by else None)
        shadow = shadow_table(source)

        allowed = self.allow_non_atomic if allow_non_atomic is None else allow_non_atomic
        if not self.backend.supports_transactional_ddl:
            if not allowed:
                raise NotSupportedError(
                    f"Backend {self.backend.name!r} has no transactional DDL; "
                    "back up the database and pass allow_non_atomic=True"
                )
            logger.warning(
                "Rebuilding without transactional DDL, a failure needs restore from backup",
                table=source.name,
                backend=self.backend.name,
            )

        started = time.perf_counter()
        step = "recover"
        try:
            connection = await self._session.connection()
            await self._recover(connection, source, shadow)

            if self.lock_table and self.backend.supports_table_lock:
                step = "lock"
                await self.backend.lock_table(self._session, source)

            step = "create shadow"
            await connection.run_sync(shadow.create)

            step = "copy rows"
            columns = [c.name for c in source.columns]
            await self._session.execute(
                insert(shadow).from_select(columns, select(*source.columns).order_by(*order))
            )

            step = "drop original"
            await connection.run_sync(source.drop)

            step = "rename shadow"
            await self._rename(connection, shadow, source.name)

            step = "recreate indexes"
            for index in source.indexes:
                await connection.run_sync(index.create)

            step = "count rows"
            result = await self._session.execute(select(func.count()).select_from(source))
            rows = int(result.scalar_one())

            step = "commit"
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error(
                "Table rebuild failed",
                table=source.name,
                step=step,
                error=str(exc),
            )
            raise MaintenanceError(source.name, step) from exc

        logger.info(
            "Table rebuilt in sorted order",
            table=source.name,
            order_by=list(order_by or descriptor.sort_key),
            rows=rows,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return rows

    async def _recover(self, connection: AsyncConnection, source: Table, shadow: Table) -> None:
        """Finish or discard a shadow table left by an interrupted rebuild."""

        def _existing(sync_connection: Any) -> tuple[bool, bool]:
            inspector = inspect(sync_connection)
            return (
                inspector.has_table(source.name, schema=source.schema),
                inspector.has_table(shadow.name, schema=shadow.schema),
            )

        has_source, has_shadow = await connection.run_sync(_existing)
        if not has_shadow:
            return

        if has_source:
            logger.warning("Dropping stale shadow table", table=source.name, shadow=shadow.name)
            await connection.run_sync(shadow.drop)
            return

        logger.warning(
            "Original table missing, completing interrupted swap",
            table=source.name,
            shadow=shadow.name,
        )
        await self._rename(connection, shadow, source.name)
        for index in source.indexes:
            await connection.run_sync(index.create, checkfirst=True)

    async def _rename(self, connection: AsyncConnection, table: Table, new_name: str) -> None:
        preparer = connection.dialect.identifier_preparer
        await connection.execute(
            text(f"ALTER TABLE {preparer.format_table(table)} RENAME TO {preparer.quote(new_name)}")
        )


def shadow_table(source: Table) -> Table:
    """Column-for-column copy of ``source`` named ``<source>_sorted``, without indexes."""
    return Table(
        f"{source.name}{SHADOW_SUFFIX}",
        MetaData(),
        *(
            Column(c.name, c.type, nullable=c.nullable, primary_key=c.primary_key)
            for c in source.columns
        ),
        schema=source.schema,
    )
