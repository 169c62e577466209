"""Feed-scoped CRUD over one entity table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from gtfs_feeddb.exceptions import BackendWriteError, EntityNotFoundError, NotSupportedError
from gtfs_feeddb.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Iterable

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.dml import Delete, Insert, Update

    from gtfs_feeddb.services.feed_db.bulk_loader import BulkLoader
    from gtfs_feeddb.services.feed_db.descriptors import EntityDescriptor

logger = get_logger(__name__)

E = TypeVar("E")


class EntityStream(Generic[E]):
    """Lazy, restartable sequence of decoded entities.

    Every ``async for`` runs the query again and decodes rows as they are
    streamed from the backend, in the table's physical order.
    """

    def __init__(
        self,
        session: AsyncSession,
        descriptor: EntityDescriptor[E],
        statement: Select[Any],
    ) -> None:
        self._session = session
        self._descriptor = descriptor
        self._statement = statement

    def __aiter__(self) -> AsyncIterator[E]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[E]:
        result = await self._session.stream(self._statement)
        try:
            async for row in result.mappings():
                yield self._descriptor.decode(row)
        finally:
            await result.close()

    async def to_list(self) -> list[E]:
        return [entity async for entity in self]


class EntityCollection(Generic[E]):
    """CRUD for one entity type, scoped to one feed.

    The collection borrows the Feed Store's session and never closes it.
    Writes commit before returning; a failed write is rolled back and raised
    as ``BackendWriteError``.
    """

    def __init__(
        self,
        session: AsyncSession,
        descriptor: EntityDescriptor[E],
        feed_id: int,
        *,
        loader: BulkLoader,
    ) -> None:
        self._session = session
        self._descriptor = descriptor
        self._feed_id = feed_id
        self._loader = loader
        self._table = descriptor.table

    def __repr__(self) -> str:
        return f"<EntityCollection {self._descriptor.table_name} feed_id={self._feed_id}>"

    def __aiter__(self) -> AsyncIterator[E]:
        return self.get_all().__aiter__()

    @property
    def feed_id(self) -> int:
        return self._feed_id

    @property
    def descriptor(self) -> EntityDescriptor[E]:
        return self._descriptor

    async def add(self, entity: E) -> None:
        """Insert one entity."""
        row = self._descriptor.encode(self._feed_id, entity)
        await self._write(insert(self._table).values(row), key=self._descriptor.key_of(entity))

    async def add_range(self, entities: Iterable[E] | AsyncIterable[E]) -> int:
        """Insert many entities; returns the number of rows written.

        Large batches go through the bulk loader when the backend has a copy
        channel. Smaller ones, or all of them on backends without one, are
        inserted row by row in a single transaction.
        """
        batch = await _collect(entities)
        if not batch:
            return 0

        if self._loader.should_stream(len(batch)):
            return await self._loader.load(self._descriptor, self._feed_id, batch)

        rows = [self._descriptor.encode(self._feed_id, entity) for entity in batch]
        key = None
        try:
            for row in rows:
                key = row[self._descriptor.key]
                await self._session.execute(insert(self._table).values(row))
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise self._write_error(exc, key) from exc

        logger.debug(
            "Inserted rows one at a time",
            table=self._descriptor.table_name,
            feed_id=self._feed_id,
            rows=len(rows),
        )
        return len(rows)

    async def get(self, key: str) -> Any:
        """Entity with natural key ``key``.

        Grouped types return every row of the group in sort-key order.
        Raises ``EntityNotFoundError`` when nothing matches.
        """
        statement = (
            self._scoped(select(self._table))
            .where(self._descriptor.key_column == key)
            .order_by(*self._descriptor.order_columns())
        )
        result = await self._session.execute(statement)
        rows = result.mappings().all()
        if not rows:
            raise EntityNotFoundError(self._descriptor.table_name, self._feed_id, key)
        if self._descriptor.unique:
            return self._descriptor.decode(rows[0])
        return [self._descriptor.decode(row) for row in rows]

    async def get_at(self, index: int) -> E:
        """Entity at position ``index`` in sort-key order."""
        if index < 0:
            raise NotSupportedError("Positional access from the end is not supported")
        statement = (
            self._scoped(select(self._table))
            .order_by(*self._descriptor.order_columns())
            .offset(index)
            .limit(1)
        )
        result = await self._session.execute(statement)
        row = result.mappings().first()
        if row is None:
            raise IndexError(f"{self._descriptor.table_name} index {index} out of range")
        return self._descriptor.decode(row)

    def get_all(self) -> EntityStream[E]:
        """Every entity of this feed, streamed lazily."""
        return EntityStream(self._session, self._descriptor, self._scoped(select(self._table)))

    async def get_ids(self) -> set[str]:
        """Distinct natural keys present in this feed."""
        statement = self._scoped(select(self._descriptor.key_column)).distinct()
        result = await self._session.execute(statement)
        return set(result.scalars().all())

    async def count(self) -> int:
        statement = self._scoped(select(func.count()).select_from(self._table))
        result = await self._session.execute(statement)
        return int(result.scalar_one())

    async def update(self, key: str, entity: E) -> bool:
        """Replace every column of the row keyed ``key``; False if there is none."""
        if not self._descriptor.unique:
            raise NotSupportedError(
                f"{self._descriptor.table_name} rows are grouped by "
                f"{self._descriptor.key}; update by key is ambiguous"
            )
        values = self._descriptor.encode(self._feed_id, entity)
        statement = (
            self._scoped(update(self._table))
            .where(self._descriptor.key_column == key)
            .values(values)
        )
        return await self._write(statement, key=key) > 0

    async def remove(self, key: str) -> bool:
        """Delete the row (or group) keyed ``key``; False if there is none."""
        statement = self._scoped(delete(self._table)).where(self._descriptor.key_column == key)
        return await self._write(statement, key=key) > 0

    async def remove_range(self, keys: Iterable[str]) -> int:
        """Delete every row whose key is in ``keys``; returns rows removed."""
        keys = list(keys)
        if not keys:
            return 0
        statement = self._scoped(delete(self._table)).where(self._descriptor.key_column.in_(keys))
        return await self._write(statement)

    async def remove_all(self) -> int:
        """Delete every row of this feed; returns rows removed."""
        return await self._write(self._scoped(delete(self._table)))

    def _scoped(self, statement: Any) -> Any:
        return statement.where(self._table.c.feed_id == self._feed_id)

    async def _write(self, statement: Insert | Update | Delete, key: Any = None) -> int:
        try:
            result = await self._session.execute(statement)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise self._write_error(exc, key) from exc
        return result.rowcount

    def _write_error(self, exc: SQLAlchemyError, key: Any) -> BackendWriteError:
        logger.error(
            "Write failed",
            table=self._descriptor.table_name,
            feed_id=self._feed_id,
            key=key,
            error=str(exc),
        )
        return BackendWriteError(
            f"Write failed: {exc}",
            table=self._descriptor.table_name,
            feed_id=self._feed_id,
            key=key,
        )


async def _collect(entities: Iterable[E] | AsyncIterable[E]) -> list[E]:
    if hasattr(entities, "__aiter__"):
        return [entity async for entity in entities]  # type: ignore[union-attr]
    return list(entities)  # type: ignore[arg-type]
