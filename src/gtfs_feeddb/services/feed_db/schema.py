"""Schema creation for the feed database."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from gtfs_feeddb.exceptions import SchemaError
from gtfs_feeddb.logging import get_logger
from gtfs_feeddb.models.base import metadata

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class SchemaManager:
    """Creates the ``feed`` table, the twelve entity tables and their indexes."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def ensure_schema(self) -> None:
        """Create missing tables and indexes; existing ones are left alone."""
        try:
            connection = await self._session.connection()
            await connection.run_sync(metadata.create_all, checkfirst=True)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Schema creation failed", error=str(exc))
            raise SchemaError(f"Schema creation failed: {exc}") from exc

        logger.info("Schema ensured", tables=len(metadata.tables))

    async def drop_schema(self) -> None:
        """Drop every table of the schema, data included."""
        try:
            connection = await self._session.connection()
            await connection.run_sync(metadata.drop_all, checkfirst=True)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Schema drop failed", error=str(exc))
            raise SchemaError(f"Schema drop failed: {exc}") from exc

        logger.info("Schema dropped", tables=len(metadata.tables))
