"""Table definitions for the multi-feed GTFS schema.

Every entity table carries ``feed_id`` as its first column; rows of different
feeds share the tables and are told apart by it. There are no foreign keys
and no uniqueness constraints on natural keys.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Date, Float, Index, Integer, Table, Text

from gtfs_feeddb.models.base import metadata


def _feed_id() -> Column[int]:
    return Column("feed_id", Integer, nullable=False)


feed = Table(
    "feed",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("publisher_name", Text),
    Column("publisher_url", Text),
    Column("lang", Text),
    Column("start_date", Date),
    Column("end_date", Date),
    Column("version", Text),
    # Ids of removed feeds are never handed out again.
    sqlite_autoincrement=True,
)

agency = Table(
    "agency",
    metadata,
    _feed_id(),
    Column("agency_id", Text, nullable=False),
    Column("agency_name", Text),
    Column("agency_url", Text),
    Column("agency_timezone", Text),
    Column("agency_lang", Text),
    Column("agency_phone", Text),
    Column("agency_fare_url", Text),
)

calendar = Table(
    "calendar",
    metadata,
    _feed_id(),
    Column("service_id", Text, nullable=False),
    Column("monday", Boolean),
    Column("tuesday", Boolean),
    Column("wednesday", Boolean),
    Column("thursday", Boolean),
    Column("friday", Boolean),
    Column("saturday", Boolean),
    Column("sunday", Boolean),
    Column("start_date", Date),
    Column("end_date", Date),
)

calendar_date = Table(
    "calendar_date",
    metadata,
    _feed_id(),
    Column("service_id", Text, nullable=False),
    Column("date", Date),
    Column("exception_type", Integer),
)

fare_attribute = Table(
    "fare_attribute",
    metadata,
    _feed_id(),
    Column("fare_id", Text, nullable=False),
    Column("price", Float),
    Column("currency_type", Text),
    Column("payment_method", Integer),
    Column("transfers", Integer),
    Column("transfer_duration", Integer),
)

fare_rule = Table(
    "fare_rule",
    metadata,
    _feed_id(),
    Column("fare_id", Text, nullable=False),
    Column("route_id", Text),
    Column("origin_id", Text),
    Column("destination_id", Text),
    Column("contains_id", Text),
)

frequency = Table(
    "frequency",
    metadata,
    _feed_id(),
    Column("trip_id", Text, nullable=False),
    Column("start_time", Integer),
    Column("end_time", Integer),
    Column("headway_secs", Integer),
    Column("exact_times", Boolean),
)

route = Table(
    "route",
    metadata,
    _feed_id(),
    Column("route_id", Text, nullable=False),
    Column("agency_id", Text),
    Column("route_short_name", Text),
    Column("route_long_name", Text),
    Column("route_desc", Text),
    Column("route_type", Integer),
    Column("route_url", Text),
    Column("route_color", Text),
    Column("route_text_color", Text),
)

shape = Table(
    "shape",
    metadata,
    _feed_id(),
    Column("shape_id", Text, nullable=False),
    Column("shape_pt_lat", Float),
    Column("shape_pt_lon", Float),
    Column("shape_pt_sequence", Integer),
    Column("shape_dist_traveled", Float),
    Index("ix_shape_shape_id", "shape_id"),
)

stop = Table(
    "stop",
    metadata,
    _feed_id(),
    Column("stop_id", Text, nullable=False),
    Column("stop_code", Text),
    Column("stop_name", Text),
    Column("stop_desc", Text),
    Column("stop_lat", Float),
    Column("stop_lon", Float),
    Column("zone_id", Text),
    Column("stop_url", Text),
    Column("location_type", Integer),
    Column("parent_station", Text),
    Column("stop_timezone", Text),
    Column("wheelchair_boarding", Integer),
    Index("ix_stop_stop_id", "stop_id"),
)

stop_time = Table(
    "stop_time",
    metadata,
    _feed_id(),
    Column("trip_id", Text, nullable=False),
    Column("arrival_time", Integer),
    Column("departure_time", Integer),
    Column("stop_id", Text),
    Column("stop_sequence", Integer),
    Column("stop_headsign", Text),
    Column("pickup_type", Integer),
    Column("drop_off_type", Integer),
    Column("shape_dist_traveled", Float),
    Index("ix_stop_time_trip_id", "trip_id"),
)

transfer = Table(
    "transfer",
    metadata,
    _feed_id(),
    Column("from_stop_id", Text, nullable=False),
    Column("to_stop_id", Text),
    Column("transfer_type", Integer),
    Column("min_transfer_time", Integer),
)

trip = Table(
    "trip",
    metadata,
    _feed_id(),
    Column("trip_id", Text, nullable=False),
    Column("route_id", Text),
    Column("service_id", Text),
    Column("trip_headsign", Text),
    Column("trip_short_name", Text),
    Column("direction_id", Integer),
    Column("block_id", Text),
    Column("shape_id", Text),
    Column("wheelchair_accessible", Integer),
)

ENTITY_TABLES: tuple[Table, ...] = (
    agency,
    calendar,
    calendar_date,
    fare_attribute,
    fare_rule,
    frequency,
    route,
    shape,
    stop,
    stop_time,
    transfer,
    trip,
)
