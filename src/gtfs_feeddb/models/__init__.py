"""Entity records, feed container and table definitions."""

from gtfs_feeddb.models.base import metadata
from gtfs_feeddb.models.entities import (
    Agency,
    Calendar,
    CalendarDate,
    DirectionType,
    ExceptionType,
    FareAttribute,
    FareRule,
    Frequency,
    LocationType,
    PaymentMethod,
    PickupDropOffType,
    Route,
    RouteType,
    ShapePoint,
    Stop,
    StopTime,
    Transfer,
    TransferType,
    Trip,
    WheelchairAccessibility,
)
from gtfs_feeddb.models.feed import COLLECTION_NAMES, FeedInfo, FeedSource, GtfsFeed
from gtfs_feeddb.models.tables import ENTITY_TABLES

__all__ = [
    "COLLECTION_NAMES",
    "ENTITY_TABLES",
    "Agency",
    "Calendar",
    "CalendarDate",
    "DirectionType",
    "ExceptionType",
    "FareAttribute",
    "FareRule",
    "FeedInfo",
    "FeedSource",
    "Frequency",
    "GtfsFeed",
    "LocationType",
    "PaymentMethod",
    "PickupDropOffType",
    "Route",
    "RouteType",
    "ShapePoint",
    "Stop",
    "StopTime",
    "Transfer",
    "TransferType",
    "Trip",
    "WheelchairAccessibility",
    "metadata",
]
