from __future__ import annotations

import pytest

from journey_planner.adapters.persistence import InMemoryStopStore
from journey_planner.domain.algorithms.gtfs_normalizer import RawFeed, normalize_feed
from journey_planner.domain.models import GtfsFeed


def city_raw_feed() -> RawFeed:
    """Small north-south city: a metro, a bus and a tram line.

    A -M1- B -M1- C -35- D -T3- E, plus stops no line serves.
    """

    stops = [
        {"stop_id": "A", "stop_name": "Alpha", "stop_lat": "38.4000", "stop_lon": "27.1000"},
        {"stop_id": "A2", "stop_name": "Alpha North", "stop_lat": "38.4020", "stop_lon": "27.1000"},
        {"stop_id": "B", "stop_name": "Bravo", "stop_lat": "38.4200", "stop_lon": "27.1000"},
        {"stop_id": "C", "stop_name": "Charlie", "stop_lat": "38.4400", "stop_lon": "27.1000"},
        {"stop_id": "D", "stop_name": "Delta", "stop_lat": "38.4400", "stop_lon": "27.1300"},
        {"stop_id": "E", "stop_name": "Echo", "stop_lat": "38.4700", "stop_lon": "27.1300"},
        {"stop_id": "X", "stop_name": "Xray", "stop_lat": "38.4000", "stop_lon": "27.1200"},
        {"stop_id": "Z", "stop_name": "Zulu", "stop_lat": "39.0000", "stop_lon": "27.1000"},
    ]
    routes = [
        {
            "route_id": "R1",
            "route_short_name": "M1",
            "route_long_name": "Alpha - Charlie",
            "route_type": "1",
            "route_color": "D61C1F",
        },
        {"route_id": "R2", "route_short_name": "35", "route_long_name": "", "route_type": "3"},
        {"route_id": "R3", "route_short_name": "", "route_long_name": "Delta - Echo", "route_type": "0"},
    ]
    trips = [
        {"route_id": "R1", "service_id": "WK", "trip_id": "T1", "trip_headsign": "Charlie"},
        {"route_id": "R2", "service_id": "WK", "trip_id": "T2", "trip_headsign": "Delta"},
        {"route_id": "R3", "service_id": "WK", "trip_id": "T3", "trip_headsign": ""},
    ]

    def call(trip_id: str, stop_id: str, seq: int, time: str) -> dict[str, str]:
        return {
            "trip_id": trip_id,
            "arrival_time": time,
            "departure_time": time,
            "stop_id": stop_id,
            "stop_sequence": str(seq),
        }

    stop_times = [
        call("T1", "A", 1, "08:00:00"),
        call("T1", "B", 2, "08:03:00"),
        call("T1", "C", 3, "08:06:00"),
        call("T2", "C", 1, "08:10:00"),
        call("T2", "D", 2, "08:20:00"),
        call("T3", "D", 1, "08:30:00"),
        call("T3", "E", 2, "08:40:00"),
    ]
    return RawFeed(stops=stops, routes=routes, trips=trips, stop_times=stop_times)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def city_feed() -> GtfsFeed:
    feed, _ = normalize_feed(city_raw_feed())
    return feed


@pytest.fixture
def city_store(city_feed: GtfsFeed) -> InMemoryStopStore:
    return InMemoryStopStore.from_feed(city_feed)


def hub_raw_feed(bus_stop_lat: float) -> RawFeed:
    """Metro A -> Metro Hub, and a bus from a separate stop near the hub to F.

    The bus stop shares no name or parent station with the metro platform, so
    riders can only change lines on foot.
    """

    stops = [
        {"stop_id": "A", "stop_name": "Alpha", "stop_lat": "38.4000", "stop_lon": "27.1000"},
        {"stop_id": "HUB", "stop_name": "Metro Hub", "stop_lat": "38.4300", "stop_lon": "27.1000"},
        {"stop_id": "HB", "stop_name": "Hub Bus Stop", "stop_lat": str(bus_stop_lat), "stop_lon": "27.1000"},
        {"stop_id": "F", "stop_name": "Foxtrot", "stop_lat": "38.4600", "stop_lon": "27.1000"},
    ]
    routes = [
        {"route_id": "M", "route_short_name": "M1", "route_long_name": "", "route_type": "1"},
        {"route_id": "B9", "route_short_name": "9", "route_long_name": "", "route_type": "3"},
    ]
    trips = [
        {"route_id": "M", "service_id": "WK", "trip_id": "TM", "trip_headsign": "Metro Hub"},
        {"route_id": "B9", "service_id": "WK", "trip_id": "TB", "trip_headsign": "Foxtrot"},
    ]
    stop_times = [
        {"trip_id": "TM", "arrival_time": "08:00:00", "departure_time": "08:00:00", "stop_id": "A", "stop_sequence": "1"},
        {"trip_id": "TM", "arrival_time": "08:10:00", "departure_time": "08:10:00", "stop_id": "HUB", "stop_sequence": "2"},
        {"trip_id": "TB", "arrival_time": "08:20:00", "departure_time": "08:20:00", "stop_id": "HB", "stop_sequence": "1"},
        {"trip_id": "TB", "arrival_time": "08:32:00", "departure_time": "08:32:00", "stop_id": "F", "stop_sequence": "2"},
    ]
    return RawFeed(stops=stops, routes=routes, trips=trips, stop_times=stop_times)


@pytest.fixture
def hub_store() -> InMemoryStopStore:
    """Bus stop 300 m from the metro hub."""

    feed, _ = normalize_feed(hub_raw_feed(38.4327))
    return InMemoryStopStore.from_feed(feed)


@pytest.fixture
def far_hub_store() -> InMemoryStopStore:
    """Bus stop 700 m from the metro hub, too far to change on foot."""

    feed, _ = normalize_feed(hub_raw_feed(38.4363))
    return InMemoryStopStore.from_feed(feed)
