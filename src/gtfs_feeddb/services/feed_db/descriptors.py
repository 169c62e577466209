"""Entity-type descriptors: how each GTFS record maps onto its table."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from gtfs_feeddb.models import entities, tables

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Column, Table

E = TypeVar("E")


@dataclass(frozen=True)
class EntityDescriptor(Generic[E]):
    """Table, record type, natural key and sort order of one entity type.

    ``unique`` descriptors have one row per natural key in a feed. The others
    are grouped: the key names a group of rows (all stop times of a trip,
    all points of a shape).
    """

    name: str
    table: Table
    entity_type: type[E]
    key: str
    sort_key: tuple[str, ...]
    unique: bool = True
    enums: Mapping[str, type[IntEnum]] = field(default_factory=dict)

    @property
    def table_name(self) -> str:
        return self.table.name

    @property
    def columns(self) -> tuple[str, ...]:
        """Entity columns in table order, without ``feed_id``."""
        return tuple(c.name for c in self.table.columns if c.name != "feed_id")

    @property
    def key_column(self) -> Column[Any]:
        return self.table.c[self.key]

    def key_of(self, entity: E) -> str:
        return getattr(entity, self.key)

    def order_columns(self, sort_key: tuple[str, ...] | None = None) -> list[Column[Any]]:
        """Sort key columns followed by every other column.

        The trailing columns make the order total, so sorting is repeatable.
        """
        leading = tuple(sort_key or self.sort_key)
        unknown = [name for name in leading if name not in self.table.c]
        if unknown:
            raise KeyError(f"{self.table_name} has no column(s) {unknown}")
        rest = [c.name for c in self.table.columns if c.name not in leading]
        return [self.table.c[name] for name in (*leading, *rest)]

    def encode(self, feed_id: int, entity: E) -> dict[str, Any]:
        """Row values for ``entity``: ``feed_id`` first, then table columns."""
        if not isinstance(entity, self.entity_type):
            raise TypeError(
                f"{self.table_name} expects {self.entity_type.__name__}, "
                f"got {type(entity).__name__}"
            )
        row: dict[str, Any] = {"feed_id": feed_id}
        for name in self.columns:
            value = getattr(entity, name)
            if isinstance(value, IntEnum):
                value = int(value)
            row[name] = value
        return row

    def decode(self, row: Mapping[str, Any]) -> E:
        """Build an entity from a result row; NULL stays ``None``."""
        values: dict[str, Any] = {}
        for name in self.columns:
            value = row[name]
            enum_type = self.enums.get(name)
            if value is not None and enum_type is not None:
                value = _to_enum(enum_type, value)
            values[name] = value
        return self.entity_type(**values)


def _to_enum(enum_type: type[IntEnum], value: int) -> IntEnum | int:
    # Extended codes (e.g. the 100-1702 route types) are kept as plain ints.
    try:
        return enum_type(value)
    except ValueError:
        return value


AGENCIES: EntityDescriptor[entities.Agency] = EntityDescriptor(
    name="agencies",
    table=tables.agency,
    entity_type=entities.Agency,
    key="agency_id",
    sort_key=("agency_id",),
)

CALENDARS: EntityDescriptor[entities.Calendar] = EntityDescriptor(
    name="calendars",
    table=tables.calendar,
    entity_type=entities.Calendar,
    key="service_id",
    sort_key=("service_id",),
)

CALENDAR_DATES: EntityDescriptor[entities.CalendarDate] = EntityDescriptor(
    name="calendar_dates",
    table=tables.calendar_date,
    entity_type=entities.CalendarDate,
    key="service_id",
    sort_key=("service_id", "date"),
    unique=False,
    enums={"exception_type": entities.ExceptionType},
)

FARE_ATTRIBUTES: EntityDescriptor[entities.FareAttribute] = EntityDescriptor(
    name="fare_attributes",
    table=tables.fare_attribute,
    entity_type=entities.FareAttribute,
    key="fare_id",
    sort_key=("fare_id",),
    enums={"payment_method": entities.PaymentMethod},
)

FARE_RULES: EntityDescriptor[entities.FareRule] = EntityDescriptor(
    name="fare_rules",
    table=tables.fare_rule,
    entity_type=entities.FareRule,
    key="fare_id",
    sort_key=("fare_id", "route_id"),
    unique=False,
)

FREQUENCIES: EntityDescriptor[entities.Frequency] = EntityDescriptor(
    name="frequencies",
    table=tables.frequency,
    entity_type=entities.Frequency,
    key="trip_id",
    sort_key=("trip_id", "start_time"),
    unique=False,
)

ROUTES: EntityDescriptor[entities.Route] = EntityDescriptor(
    name="routes",
    table=tables.route,
    entity_type=entities.Route,
    key="route_id",
    sort_key=("route_id",),
    enums={"route_type": entities.RouteType},
)

SHAPES: EntityDescriptor[entities.ShapePoint] = EntityDescriptor(
    name="shapes",
    table=tables.shape,
    entity_type=entities.ShapePoint,
    key="shape_id",
    sort_key=("shape_id", "shape_pt_sequence"),
    unique=False,
)

STOPS: EntityDescriptor[entities.Stop] = EntityDescriptor(
    name="stops",
    table=tables.stop,
    entity_type=entities.Stop,
    key="stop_id",
    sort_key=("stop_id",),
    enums={
        "location_type": entities.LocationType,
        "wheelchair_boarding": entities.WheelchairAccessibility,
    },
)

STOP_TIMES: EntityDescriptor[entities.StopTime] = EntityDescriptor(
    name="stop_times",
    table=tables.stop_time,
    entity_type=entities.StopTime,
    key="trip_id",
    sort_key=("trip_id", "stop_sequence"),
    unique=False,
    enums={
        "pickup_type": entities.PickupDropOffType,
        "drop_off_type": entities.PickupDropOffType,
    },
)

TRANSFERS: EntityDescriptor[entities.Transfer] = EntityDescriptor(
    name="transfers",
    table=tables.transfer,
    entity_type=entities.Transfer,
    key="from_stop_id",
    sort_key=("from_stop_id", "to_stop_id"),
    unique=False,
    enums={"transfer_type": entities.TransferType},
)

TRIPS: EntityDescriptor[entities.Trip] = EntityDescriptor(
    name="trips",
    table=tables.trip,
    entity_type=entities.Trip,
    key="trip_id",
    sort_key=("trip_id",),
    enums={
        "direction_id": entities.DirectionType,
        "wheelchair_accessible": entities.WheelchairAccessibility,
    },
)

DESCRIPTORS: dict[str, EntityDescriptor[Any]] = {
    d.name: d
    for d in (
        AGENCIES,
        CALENDARS,
        CALENDAR_DATES,
        FARE_ATTRIBUTES,
        FARE_RULES,
        FREQUENCIES,
        ROUTES,
        SHAPES,
        STOPS,
        STOP_TIMES,
        TRANSFERS,
        TRIPS,
    )
}


def descriptor_for_table(table_name: str) -> EntityDescriptor[Any]:
    """Look up a descriptor by table name (``stop_time``) or collection name."""
    if table_name in DESCRIPTORS:
        return DESCRIPTORS[table_name]
    for descriptor in DESCRIPTORS.values():
        if descriptor.table_name == table_name:
            return descriptor
    raise KeyError(f"Unknown entity table: {table_name}")
