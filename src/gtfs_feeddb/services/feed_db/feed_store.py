"""Feed Store: feed lifecycle and feed-scoped views over the shared tables."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from gtfs_feeddb.config import Settings, get_settings
from gtfs_feeddb.database import create_engine, create_session_factory
from gtfs_feeddb.exceptions import BackendWriteError, FeedCopyError, FeedNotFoundError
from gtfs_feeddb.logging import get_logger
from gtfs_feeddb.models.feed import COLLECTION_NAMES, FeedInfo
from gtfs_feeddb.models.tables import ENTITY_TABLES
from gtfs_feeddb.models.tables import feed as feed_table
from gtfs_feeddb.services.feed_db import descriptors
from gtfs_feeddb.services.feed_db.backends import get_backend
from gtfs_feeddb.services.feed_db.bulk_loader import BulkLoader
from gtfs_feeddb.services.feed_db.collection import EntityCollection
from gtfs_feeddb.services.feed_db.maintenance import TableRebuilder
from gtfs_feeddb.services.feed_db.schema import SchemaManager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from gtfs_feeddb.models import entities
    from gtfs_feeddb.models.feed import FeedSource
    from gtfs_feeddb.services.feed_db.backends import Backend

logger = get_logger(__name__)


class FeedView:
    """The twelve entity collections of one feed, plus its feed row.

    A view is itself a valid feed source, so a stored feed can be copied into
    another feed or another store.
    """

    def __init__(self, session: AsyncSession, feed_id: int, loader: BulkLoader) -> None:
        self._session = session
        self.feed_id = feed_id

        self.agencies: EntityCollection[entities.Agency] = EntityCollection(
            session, descriptors.AGENCIES, feed_id, loader=loader
        )
        self.calendars: EntityCollection[entities.Calendar] = EntityCollection(
            session, descriptors.CALENDARS, feed_id, loader=loader
        )
        self.calendar_dates: EntityCollection[entities.CalendarDate] = EntityCollection(
            session, descriptors.CALENDAR_DATES, feed_id, loader=loader
        )
        self.fare_attributes: EntityCollection[entities.FareAttribute] = EntityCollection(
            session, descriptors.FARE_ATTRIBUTES, feed_id, loader=loader
        )
        self.fare_rules: EntityCollection[entities.FareRule] = EntityCollection(
            session, descriptors.FARE_RULES, feed_id, loader=loader
        )
        self.frequencies: EntityCollection[entities.Frequency] = EntityCollection(
            session, descriptors.FREQUENCIES, feed_id, loader=loader
        )
        self.routes: EntityCollection[entities.Route] = EntityCollection(
            session, descriptors.ROUTES, feed_id, loader=loader
        )
        self.shapes: EntityCollection[entities.ShapePoint] = EntityCollection(
            session, descriptors.SHAPES, feed_id, loader=loader
        )
        self.stops: EntityCollection[entities.Stop] = EntityCollection(
            session, descriptors.STOPS, feed_id, loader=loader
        )
        self.stop_times: EntityCollection[entities.StopTime] = EntityCollection(
            session, descriptors.STOP_TIMES, feed_id, loader=loader
        )
        self.transfers: EntityCollection[entities.Transfer] = EntityCollection(
            session, descriptors.TRANSFERS, feed_id, loader=loader
        )
        self.trips: EntityCollection[entities.Trip] = EntityCollection(
            session, descriptors.TRIPS, feed_id, loader=loader
        )

    def __repr__(self) -> str:
        return f"<FeedView feed_id={self.feed_id}>"

    def collections(self) -> Iterator[tuple[str, EntityCollection[Any]]]:
        for name in COLLECTION_NAMES:
            yield name, getattr(self, name)

    async def get_feed_info(self) -> FeedInfo:
        result = await self._session.execute(
            select(feed_table).where(feed_table.c.id == self.feed_id)
        )
        row = result.mappings().first()
        if row is None:
            raise FeedNotFoundError(self.feed_id)
        return FeedInfo(**{name: row[name] for name in _FEED_INFO_COLUMNS})

    async def set_feed_info(self, info: FeedInfo) -> bool:
        """Overwrite the feed row's publisher metadata."""
        statement = (
            update(feed_table).where(feed_table.c.id == self.feed_id).values(**asdict(info))
        )
        try:
            result = await self._session.execute(statement)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Feed info update failed", feed_id=self.feed_id, error=str(exc))
            raise BackendWriteError(
                f"Feed info update failed: {exc}", table=feed_table.name, feed_id=self.feed_id
            ) from exc
        return result.rowcount > 0


_FEED_INFO_COLUMNS = tuple(c.name for c in feed_table.columns if c.name != "id")


class FeedStore:
    """Owns the backend session and every feed kept in it.

    Collections handed out by ``get_feed`` borrow the session; the store is
    the only owner and the only one closing it.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        backend: Backend | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._session = session
        self.backend = backend or get_backend(session.get_bind().dialect)
        self._loader = BulkLoader(
            session,
            self.backend,
            threshold=settings.bulk_load_threshold,
            enabled=settings.bulk_load_enabled,
        )
        self._schema = SchemaManager(session)
        self._rebuilder = TableRebuilder(
            session,
            self.backend,
            lock_table=settings.rebuild_lock_table,
            allow_non_atomic=settings.rebuild_allow_non_atomic,
        )

    @classmethod
    @asynccontextmanager
    async def open(
        cls, url: str | None = None, settings: Settings | None = None
    ) -> AsyncIterator[FeedStore]:
        """Open a store on ``url`` (default: configured database) with the schema ensured."""
        settings = settings or get_settings()
        engine = create_engine(url, settings)
        factory = create_session_factory(engine)
        try:
            async with factory() as session:
                store = cls(session, settings=settings)
                await store.ensure_schema()
                yield store
        finally:
            await engine.dispose()

    async def ensure_schema(self) -> None:
        await self._schema.ensure_schema()

    async def close(self) -> None:
        await self._session.close()

    async def add_feed(
        self,
        source: FeedSource | None = None,
        *,
        info: FeedInfo | None = None,
        cleanup_on_failure: bool = False,
    ) -> int:
        """Create a feed and return its id, copying ``source`` into it if given.

        Each entity type is committed on its own. If one fails, the earlier
        ones stay in the new feed and ``FeedCopyError.feed_id`` names it;
        with ``cleanup_on_failure`` the partial feed is removed first.
        """
        if info is None and source is not None:
            info = await _source_feed_info(source)
        feed_id = await self._insert_feed(info)
        if source is None:
            return feed_id

        started = time.perf_counter()
        view = self._view(feed_id)
        counts: dict[str, int] = {}
        for name, collection in view.collections():
            records = getattr(source, name, None)
            if records is None:
                continue
            try:
                counts[name] = await collection.add_range(records)
            except Exception as exc:
                logger.error(
                    "Feed copy failed",
                    feed_id=feed_id,
                    collection=name,
                    copied=counts,
                    error=str(exc),
                )
                if cleanup_on_failure:
                    await self.remove_feed(feed_id)
                raise FeedCopyError(
                    feed_id, collection.descriptor.table_name, cleaned_up=cleanup_on_failure
                ) from exc

        logger.info(
            "Feed copied",
            feed_id=feed_id,
            counts=counts,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return feed_id

    async def remove_feed(self, feed_id: int) -> bool:
        """Delete every row of ``feed_id`` and then the feed row, in one transaction.

        Returns whether the feed row existed.
        """
        table_name = feed_table.name
        try:
            for table in ENTITY_TABLES:
                table_name = table.name
                await self._session.execute(delete(table).where(table.c.feed_id == feed_id))
            table_name = feed_table.name
            result = await self._session.execute(
                delete(feed_table).where(feed_table.c.id == feed_id)
            )
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Feed removal failed", feed_id=feed_id, table=table_name, error=str(exc))
            raise BackendWriteError(
                f"Feed removal failed: {exc}", table=table_name, feed_id=feed_id
            ) from exc

        existed = result.rowcount > 0
        logger.info("Feed removed", feed_id=feed_id, existed=existed)
        return existed

    async def get_feeds(self) -> set[int]:
        result = await self._session.execute(select(feed_table.c.id))
        return set(result.scalars().all())

    async def get_feed(self, feed_id: int) -> FeedView:
        """Feed-scoped view of ``feed_id``; raises ``FeedNotFoundError`` if absent."""
        result = await self._session.execute(
            select(feed_table.c.id).where(feed_table.c.id == feed_id)
        )
        if result.scalar_one_or_none() is None:
            raise FeedNotFoundError(feed_id)
        return self._view(feed_id)

    async def sort_table(
        self,
        table_name: str,
        order_by: Sequence[str] | None = None,
        *,
        allow_non_atomic: bool | None = None,
    ) -> int:
        """Rebuild ``table_name`` in sorted order; see ``TableRebuilder``."""
        return await self._rebuilder.rebuild(
            table_name, order_by, allow_non_atomic=allow_non_atomic
        )

    async def sort_routes(self) -> int:
        return await self.sort_table("route")

    async def sort_trips(self) -> int:
        return await self.sort_table("trip")

    async def sort_stops(self) -> int:
        return await self.sort_table("stop")

    async def sort_stop_times(self) -> int:
        return await self.sort_table("stop_time")

    async def sort_frequencies(self) -> int:
        return await self.sort_table("frequency")

    def _view(self, feed_id: int) -> FeedView:
        return FeedView(self._session, feed_id, self._loader)

    async def _insert_feed(self, info: FeedInfo | None) -> int:
        statement = insert(feed_table)
        if info is not None:
            statement = statement.values(**asdict(info))
        try:
            result = await self._session.execute(statement)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Feed creation failed", error=str(exc))
            raise BackendWriteError(
                f"Feed creation failed: {exc}", table=feed_table.name
            ) from exc

        feed_id = int(result.inserted_primary_key[0])
        logger.info("Feed created", feed_id=feed_id)
        return feed_id


async def _source_feed_info(source: Any) -> FeedInfo | None:
    if isinstance(source, FeedView):
        return await source.get_feed_info()
    return getattr(source, "feed_info", None)
