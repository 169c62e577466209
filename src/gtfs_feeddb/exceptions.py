"""Errors raised by the feed database."""

from __future__ import annotations

from typing import Any


class FeedDbError(Exception):
    """Base class for feed database errors."""


class NotFoundError(FeedDbError, LookupError):
    """A requested feed or entity does not exist."""


class FeedNotFoundError(NotFoundError):
    def __init__(self, feed_id: int) -> None:
        super().__init__(f"Feed {feed_id} not found")
        self.feed_id = feed_id


class EntityNotFoundError(NotFoundError):
    def __init__(self, table: str, feed_id: int, key: Any) -> None:
        super().__init__(f"No {table} row with key {key!r} in feed {feed_id}")
        self.table = table
        self.feed_id = feed_id
        self.key = key


class NotSupportedError(FeedDbError, NotImplementedError):
    """Operation intentionally not implemented for this entity type or backend."""


class BackendWriteError(FeedDbError):
    """A write statement failed in the backend."""

    def __init__(
        self,
        message: str,
        *,
        table: str,
        feed_id: int | None = None,
        key: Any = None,
    ) -> None:
        details = [f"table={table}"]
        if feed_id is not None:
            details.append(f"feed_id={feed_id}")
        if key is not None:
            details.append(f"key={key!r}")
        super().__init__(f"{message} ({', '.join(details)})")
        self.table = table
        self.feed_id = feed_id
        self.key = key


class BulkLoadError(BackendWriteError):
    """A bulk load was aborted; none of its rows were kept."""

    def __init__(self, message: str, *, table: str, feed_id: int, row_count: int) -> None:
        super().__init__(message, table=table, feed_id=feed_id)
        self.row_count = row_count


class FeedCopyError(FeedDbError):
    """Copying a source feed failed part way.

    ``feed_id`` names the partially populated feed unless it was cleaned up.
    """

    def __init__(self, feed_id: int, table: str, *, cleaned_up: bool = False) -> None:
        state = "removed" if cleaned_up else "left partially populated"
        super().__init__(f"Copy into feed {feed_id} failed at {table}; feed {state}")
        self.feed_id = feed_id
        self.table = table
        self.cleaned_up = cleaned_up


class MaintenanceError(FeedDbError):
    """Sort/rebuild failed at ``step``."""

    def __init__(self, table: str, step: str) -> None:
        super().__init__(f"Rebuild of {table} failed during {step}")
        self.table = table
        self.step = step


class SchemaError(FeedDbError):
    """Creating or dropping the schema failed."""
