"""Bulk loading of whole entity batches through the backend's copy channel."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from gtfs_feeddb.config import get_settings
from gtfs_feeddb.exceptions import BulkLoadError, NotSupportedError
from gtfs_feeddb.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from gtfs_feeddb.services.feed_db.backends import Backend
    from gtfs_feeddb.services.feed_db.descriptors import EntityDescriptor

logger = get_logger(__name__)


class BulkLoader:
    """Writes a batch of entities of one type as a single backend operation.

    Either every row of the batch becomes visible or, on failure, none does:
    the session transaction is rolled back and ``BulkLoadError`` raised.
    There is no retry and no fallback to row-at-a-time inserts.
    """

    def __init__(
        self,
        session: AsyncSession,
        backend: Backend,
        threshold: int | None = None,
        enabled: bool | None = None,
    ) -> None:
        settings = get_settings()
        self._session = session
        self.backend = backend
        self.threshold = threshold if threshold is not None else settings.bulk_load_threshold
        self.enabled = enabled if enabled is not None else settings.bulk_load_enabled

    def should_stream(self, row_count: int) -> bool:
        """Whether a batch of ``row_count`` rows goes through the copy channel."""
        return self.enabled and self.backend.supports_bulk_copy and row_count >= self.threshold

    async def load(
        self,
        descriptor: EntityDescriptor[Any],
        feed_id: int,
        entities: Sequence[Any],
    ) -> int:
        """Copy ``entities`` into ``descriptor``'s table for ``feed_id``.

        Returns the number of rows written.
        """
        if not self.backend.supports_bulk_copy:
            raise NotSupportedError(f"Backend {self.backend.name!r} has no bulk copy channel")
        if not entities:
            return 0

        table = descriptor.table_name
        rows = [descriptor.encode(feed_id, entity) for entity in entities]
        started = time.perf_counter()
        try:
            await self.backend.copy_rows(self._session, descriptor.table, rows)
            await self._session.commit()
        except Exception as exc:
            await self._session.rollback()
            logger.error(
                "Bulk load aborted",
                table=table,
                feed_id=feed_id,
                rows=len(entities),
                error=str(exc),
            )
            raise BulkLoadError(
                f"Bulk load aborted: {exc}",
                table=table,
                feed_id=feed_id,
                row_count=len(entities),
            ) from exc

        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "Bulk load complete",
            table=table,
            feed_id=feed_id,
            rows=len(rows),
            backend=self.backend.name,
            duration_ms=duration_ms,
        )
        return len(rows)
