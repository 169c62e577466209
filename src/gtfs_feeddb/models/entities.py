"""GTFS entity records.

Attribute names follow the GTFS field names. Every attribute except the
natural key is optional and ``None`` when the feed leaves it out. Times are
seconds past the service day's midnight (they may exceed 86400).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date  # noqa: TC003 - dataclass field types
from enum import IntEnum
from typing import Optional


class RouteType(IntEnum):
    TRAM = 0
    SUBWAY = 1
    RAIL = 2
    BUS = 3
    FERRY = 4
    CABLE_TRAM = 5
    AERIAL_LIFT = 6
    FUNICULAR = 7
    TROLLEYBUS = 11
    MONORAIL = 12


class LocationType(IntEnum):
    STOP = 0
    STATION = 1
    ENTRANCE_EXIT = 2
    GENERIC_NODE = 3
    BOARDING_AREA = 4


class WheelchairAccessibility(IntEnum):
    UNKNOWN = 0
    ACCESSIBLE = 1
    NOT_ACCESSIBLE = 2


class PickupDropOffType(IntEnum):
    REGULAR = 0
    NONE = 1
    PHONE_AGENCY = 2
    COORDINATE_WITH_DRIVER = 3


class DirectionType(IntEnum):
    OUTBOUND = 0
    INBOUND = 1


class ExceptionType(IntEnum):
    ADDED = 1
    REMOVED = 2


class PaymentMethod(IntEnum):
    ON_BOARD = 0
    BEFORE_BOARDING = 1


class TransferType(IntEnum):
    RECOMMENDED = 0
    TIMED = 1
    MINIMUM_TIME = 2
    NOT_POSSIBLE = 3


@dataclass
class Agency:
    agency_id: str
    agency_name: Optional[str] = None
    agency_url: Optional[str] = None
    agency_timezone: Optional[str] = None
    agency_lang: Optional[str] = None
    agency_phone: Optional[str] = None
    agency_fare_url: Optional[str] = None


@dataclass
class Calendar:
    service_id: str
    monday: Optional[bool] = None
    tuesday: Optional[bool] = None
    wednesday: Optional[bool] = None
    thursday: Optional[bool] = None
    friday: Optional[bool] = None
    saturday: Optional[bool] = None
    sunday: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class CalendarDate:
    service_id: str
    date: Optional[date] = None
    exception_type: Optional[ExceptionType] = None


@dataclass
class FareAttribute:
    fare_id: str
    price: Optional[float] = None
    currency_type: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    # None means unlimited transfers
    transfers: Optional[int] = None
    transfer_duration: Optional[int] = None


@dataclass
class FareRule:
    fare_id: str
    route_id: Optional[str] = None
    origin_id: Optional[str] = None
    destination_id: Optional[str] = None
    contains_id: Optional[str] = None


@dataclass
class Frequency:
    trip_id: str
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    headway_secs: Optional[int] = None
    exact_times: Optional[bool] = None


@dataclass
class Route:
    route_id: str
    agency_id: Optional[str] = None
    route_short_name: Optional[str] = None
    route_long_name: Optional[str] = None
    route_desc: Optional[str] = None
    route_type: Optional[RouteType] = None
    route_url: Optional[str] = None
    route_color: Optional[str] = None
    route_text_color: Optional[str] = None


@dataclass
class ShapePoint:
    shape_id: str
    shape_pt_lat: Optional[float] = None
    shape_pt_lon: Optional[float] = None
    shape_pt_sequence: Optional[int] = None
    shape_dist_traveled: Optional[float] = None


@dataclass
class Stop:
    stop_id: str
    stop_code: Optional[str] = None
    stop_name: Optional[str] = None
    stop_desc: Optional[str] = None
    stop_lat: Optional[float] = None
    stop_lon: Optional[float] = None
    zone_id: Optional[str] = None
    stop_url: Optional[str] = None
    location_type: Optional[LocationType] = None
    parent_station: Optional[str] = None
    stop_timezone: Optional[str] = None
    wheelchair_boarding: Optional[WheelchairAccessibility] = None


@dataclass
class StopTime:
    trip_id: str
    arrival_time: Optional[int] = None
    departure_time: Optional[int] = None
    stop_id: Optional[str] = None
    stop_sequence: Optional[int] = None
    stop_headsign: Optional[str] = None
    pickup_type: Optional[PickupDropOffType] = None
    drop_off_type: Optional[PickupDropOffType] = None
    shape_dist_traveled: Optional[float] = None


@dataclass
class Transfer:
    from_stop_id: str
    to_stop_id: Optional[str] = None
    transfer_type: Optional[TransferType] = None
    min_transfer_time: Optional[int] = None


@dataclass
class Trip:
    trip_id: str
    route_id: Optional[str] = None
    service_id: Optional[str] = None
    trip_headsign: Optional[str] = None
    trip_short_name: Optional[str] = None
    direction_id: Optional[DirectionType] = None
    block_id: Optional[str] = None
    shape_id: Optional[str] = None
    wheelchair_accessible: Optional[WheelchairAccessibility] = None
