"""Tests for feed-scoped entity collections on SQLite."""

from __future__ import annotations

import warnings
from collections.abc import AsyncIterator

import pytest
from sqlalchemy.exc import SAWarning

from gtfs_feeddb.config import Settings
from gtfs_feeddb.exceptions import (
    BackendWriteError,
    BulkLoadError,
    EntityNotFoundError,
    NotSupportedError,
)
from gtfs_feeddb.models import (
    Agency,
    Route,
    RouteType,
    ShapePoint,
    Stop,
    StopTime,
    WheelchairAccessibility,
)
from gtfs_feeddb.services.feed_db import FeedStore

from .fixtures.feed_fixture import build_feed


async def _new_feed(store: FeedStore):
    feed_id = await store.add_feed()
    return await store.get_feed(feed_id)


class TestAddAndGet:
    """Insert and keyed lookup."""

    async def test_add_then_get_unique(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        stop = Stop(
            stop_id="50001",
            stop_name="Waterfront Station",
            stop_lat=49.285658,
            stop_lon=-123.111535,
            wheelchair_boarding=WheelchairAccessibility.ACCESSIBLE,
        )
        await view.stops.add(stop)

        fetched = await view.stops.get("50001")
        assert fetched == stop
        assert fetched.wheelchair_boarding is WheelchairAccessibility.ACCESSIBLE
        assert fetched.stop_desc is None

    async def test_get_missing_key(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        with pytest.raises(EntityNotFoundError) as exc_info:
            await view.routes.get("999")
        assert exc_info.value.key == "999"
        assert exc_info.value.feed_id == view.feed_id

    async def test_get_grouped_returns_group_in_order(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.shapes.add_range(
            [
                ShapePoint(shape_id="shape1", shape_pt_sequence=3),
                ShapePoint(shape_id="shape2", shape_pt_sequence=1),
                ShapePoint(shape_id="shape1", shape_pt_sequence=1),
                ShapePoint(shape_id="shape1", shape_pt_sequence=2),
            ]
        )

        points = await view.shapes.get("shape1")
        assert [p.shape_pt_sequence for p in points] == [1, 2, 3]

    async def test_add_rejects_wrong_record_type(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        with pytest.raises(TypeError):
            await view.stops.add(Route(route_id="001"))

    async def test_add_failure_is_rolled_back(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        with pytest.raises(BackendWriteError) as exc_info:
            await view.agencies.add(Agency(agency_id=None))  # type: ignore[arg-type]
        assert exc_info.value.table == "agency"

        await view.agencies.add(Agency(agency_id="TL"))
        assert await view.agencies.count() == 1

    async def test_extended_route_type_survives(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.routes.add(Route(route_id="R700", route_type=700))  # type: ignore[arg-type]
        await view.routes.add(Route(route_id="R3", route_type=RouteType.BUS))

        assert (await view.routes.get("R700")).route_type == 700
        assert (await view.routes.get("R3")).route_type is RouteType.BUS


class TestAddRange:
    """Batch insert through either write path."""

    async def test_small_batch_uses_row_inserts(self, session, settings: Settings) -> None:
        store = FeedStore(session, settings=settings.model_copy(update={"bulk_load_threshold": 1000}))
        await store.ensure_schema()
        view = await _new_feed(store)

        written = await view.stop_times.add_range(build_feed().stop_times)
        assert written == 3
        assert await view.stop_times.count() == 3

    async def test_large_batch_uses_bulk_loader(self, session, settings: Settings) -> None:
        store = FeedStore(session, settings=settings.model_copy(update={"bulk_load_threshold": 2}))
        await store.ensure_schema()
        view = await _new_feed(store)

        written = await view.stop_times.add_range(build_feed().stop_times)
        assert written == 3
        assert await view.stop_times.count() == 3

    async def test_accepts_async_iterables(self, store: FeedStore) -> None:
        view = await _new_feed(store)

        async def stops() -> AsyncIterator[Stop]:
            for stop_id in ("50001", "50002"):
                yield Stop(stop_id=stop_id)

        assert await view.stops.add_range(stops()) == 2
        assert await view.stops.get_ids() == {"50001", "50002"}

    async def test_empty_batch(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        assert await view.stops.add_range([]) == 0

    async def test_row_insert_failure_keeps_nothing(self, session, settings: Settings) -> None:
        store = FeedStore(session, settings=settings.model_copy(update={"bulk_load_threshold": 1000}))
        await store.ensure_schema()
        view = await _new_feed(store)

        batch = [Stop(stop_id="50001"), Stop(stop_id=None), Stop(stop_id="50003")]  # type: ignore[arg-type]
        with pytest.raises(BackendWriteError) as exc_info:
            await view.stops.add_range(batch)
        assert not isinstance(exc_info.value, BulkLoadError)
        assert await view.stops.count() == 0

    async def test_bulk_failure_keeps_nothing(self, session, settings: Settings) -> None:
        store = FeedStore(session, settings=settings.model_copy(update={"bulk_load_threshold": 1}))
        await store.ensure_schema()
        view = await _new_feed(store)

        batch = [Stop(stop_id="50001"), Stop(stop_id=None), Stop(stop_id="50003")]  # type: ignore[arg-type]
        with pytest.raises(BulkLoadError) as exc_info:
            await view.stops.add_range(batch)
        assert exc_info.value.row_count == 3
        assert await view.stops.count() == 0


class TestReads:
    """Positional access, enumeration, keys and counts."""

    async def test_get_at_follows_sort_key(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stops.add_range([Stop(stop_id=s) for s in ("50003", "50001", "50002")])

        assert (await view.stops.get_at(0)).stop_id == "50001"
        assert (await view.stops.get_at(2)).stop_id == "50003"

    async def test_get_at_out_of_range(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stops.add(Stop(stop_id="50001"))
        with pytest.raises(IndexError):
            await view.stops.get_at(1)

    async def test_get_at_negative_index(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        with pytest.raises(NotSupportedError):
            await view.stops.get_at(-1)

    async def test_get_all_is_restartable(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stops.add_range([Stop(stop_id="50001"), Stop(stop_id="50002")])

        stream = view.stops.get_all()
        first = [stop.stop_id async for stop in stream]
        second = await stream.to_list()
        assert sorted(first) == ["50001", "50002"]
        assert [stop.stop_id for stop in second] == first

    async def test_collection_is_async_iterable(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.agencies.add(Agency(agency_id="TL"))
        assert [a.agency_id async for a in view.agencies] == ["TL"]

    async def test_get_ids_are_distinct(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stop_times.add_range(build_feed().stop_times)
        with warnings.catch_warnings():
            warnings.simplefilter("error", SAWarning)
            ids = await view.stop_times.get_ids()
        assert ids == {"trip-001-001", "trip-002-001"}

    async def test_empty_collection(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        assert await view.trips.count() == 0
        assert await view.trips.get_ids() == set()
        assert await view.trips.get_all().to_list() == []


class TestUpdateAndRemove:
    """Mutations by natural key."""

    async def test_update_unique(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stops.add(Stop(stop_id="50001", stop_name="Waterfront"))

        updated = await view.stops.update("50001", Stop(stop_id="50001", stop_name="Waterfront Station"))
        assert updated is True
        assert (await view.stops.get("50001")).stop_name == "Waterfront Station"

    async def test_update_missing(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        assert await view.stops.update("50001", Stop(stop_id="50001")) is False

    async def test_update_grouped_not_supported(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        with pytest.raises(NotSupportedError):
            await view.stop_times.update("trip-001-001", StopTime(trip_id="trip-001-001"))

    async def test_remove(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stops.add_range([Stop(stop_id="50001"), Stop(stop_id="50002")])

        assert await view.stops.remove("50001") is True
        assert await view.stops.remove("50001") is False
        assert await view.stops.get_ids() == {"50002"}

    async def test_remove_group(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stop_times.add_range(build_feed().stop_times)

        assert await view.stop_times.remove("trip-001-001") is True
        assert await view.stop_times.count() == 1

    async def test_remove_range(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stops.add_range([Stop(stop_id=s) for s in ("50001", "50002", "50003")])

        assert await view.stops.remove_range(["50001", "50003", "59999"]) == 2
        assert await view.stops.remove_range([]) == 0
        assert await view.stops.get_ids() == {"50002"}

    async def test_remove_all(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.stops.add_range([Stop(stop_id="50001"), Stop(stop_id="50002")])

        assert await view.stops.remove_all() == 2
        assert await view.stops.count() == 0


class TestFeedIsolation:
    """Collections of different feeds never see each other's rows."""

    async def test_reads_and_writes_are_scoped(self, store: FeedStore) -> None:
        first = await _new_feed(store)
        second = await _new_feed(store)
        await first.stops.add_range([Stop(stop_id="50001", stop_name="A"), Stop(stop_id="50002")])
        await second.stops.add(Stop(stop_id="50001", stop_name="B"))

        assert await first.stops.count() == 2
        assert await second.stops.count() == 1
        assert (await second.stops.get("50001")).stop_name == "B"

        await second.stops.update("50001", Stop(stop_id="50001", stop_name="C"))
        assert (await first.stops.get("50001")).stop_name == "A"

        await first.stops.remove_all()
        assert await second.stops.get_ids() == {"50001"}


class TestAgencyScenarios:
    """Two agencies and a shared route id across feeds."""

    async def test_ttc_and_go(self, store: FeedStore) -> None:
        view = await _new_feed(store)
        await view.agencies.add_range(
            [
                Agency(agency_id="TTC", agency_name="Toronto Transit Commission"),
                Agency(agency_id="GO", agency_name="GO Transit"),
            ]
        )

        assert await view.agencies.get_ids() == {"TTC", "GO"}
        assert await view.agencies.count() == 2

        renamed = Agency(agency_id="TTC", agency_name="TTC", agency_timezone="America/Toronto")
        assert await view.agencies.update("TTC", renamed) is True
        assert await view.agencies.get("TTC") == renamed

        assert await view.agencies.update("MISSING", Agency(agency_id="MISSING")) is False
        assert await view.agencies.get_ids() == {"TTC", "GO"}

    async def test_same_route_in_two_feeds(self, store: FeedStore) -> None:
        feed_a = await _new_feed(store)
        feed_b = await _new_feed(store)
        await feed_a.routes.add(Route(route_id="100", route_long_name="A line"))
        await feed_b.routes.add(Route(route_id="100", route_long_name="B line"))

        assert (await feed_a.routes.get("100")).route_long_name == "A line"
        assert (await feed_b.routes.get("100")).route_long_name == "B line"

        await feed_a.routes.remove("100")
        assert await feed_a.routes.count() == 0
        assert await feed_b.routes.count() == 1
