"""Feed-level records and the in-memory feed container."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date  # noqa: TC003 - dataclass field types
from typing import TYPE_CHECKING, Any, Optional, Protocol

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Iterable

    from gtfs_feeddb.models.entities import (
        Agency,
        Calendar,
        CalendarDate,
        FareAttribute,
        FareRule,
        Frequency,
        Route,
        ShapePoint,
        Stop,
        StopTime,
        Transfer,
        Trip,
    )

# Collection attribute names shared by GtfsFeed, FeedView and any FeedSource.
COLLECTION_NAMES: tuple[str, ...] = (
    "agencies",
    "calendars",
    "calendar_dates",
    "fare_attributes",
    "fare_rules",
    "frequencies",
    "routes",
    "shapes",
    "stops",
    "stop_times",
    "transfers",
    "trips",
)


@dataclass
class FeedInfo:
    """Publisher metadata stored on the ``feed`` row."""

    publisher_name: Optional[str] = None
    publisher_url: Optional[str] = None
    lang: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    version: Optional[str] = None


class FeedSource(Protocol):
    """Anything exposing the twelve entity collections by name.

    Each attribute may be a plain or an async iterable, so both an
    in-memory ``GtfsFeed`` and a stored ``FeedView`` qualify.
    """

    agencies: Iterable[Any] | AsyncIterable[Any]
    calendars: Iterable[Any] | AsyncIterable[Any]
    calendar_dates: Iterable[Any] | AsyncIterable[Any]
    fare_attributes: Iterable[Any] | AsyncIterable[Any]
    fare_rules: Iterable[Any] | AsyncIterable[Any]
    frequencies: Iterable[Any] | AsyncIterable[Any]
    routes: Iterable[Any] | AsyncIterable[Any]
    shapes: Iterable[Any] | AsyncIterable[Any]
    stops: Iterable[Any] | AsyncIterable[Any]
    stop_times: Iterable[Any] | AsyncIterable[Any]
    transfers: Iterable[Any] | AsyncIterable[Any]
    trips: Iterable[Any] | AsyncIterable[Any]


@dataclass
class GtfsFeed:
    """Plain in-memory feed, e.g. as produced by a GTFS file reader."""

    feed_info: Optional[FeedInfo] = None
    agencies: list[Agency] = field(default_factory=list)
    calendars: list[Calendar] = field(default_factory=list)
    calendar_dates: list[CalendarDate] = field(default_factory=list)
    fare_attributes: list[FareAttribute] = field(default_factory=list)
    fare_rules: list[FareRule] = field(default_factory=list)
    frequencies: list[Frequency] = field(default_factory=list)
    routes: list[Route] = field(default_factory=list)
    shapes: list[ShapePoint] = field(default_factory=list)
    stops: list[Stop] = field(default_factory=list)
    stop_times: list[StopTime] = field(default_factory=list)
    transfers: list[Transfer] = field(default_factory=list)
    trips: list[Trip] = field(default_factory=list)
