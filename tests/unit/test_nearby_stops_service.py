from __future__ import annotations

from dataclasses import dataclass

import pytest

from journey_planner.adapters.cache.in_memory_cache import InMemoryTtlCache
from journey_planner.adapters.persistence import InMemoryStopStore
from journey_planner.app.services.nearby_stops_service import NearbyStopFinder
from journey_planner.domain.models import GeoPoint, Stop


@dataclass
class _CountingStore:
    stops: list[Stop]
    bounds_calls: int = 0

    async def get_stops_in_bounds(
        self, min_lat: float, min_lon: float, max_lat: float, max_lon: float
    ) -> list[Stop]:
        self.bounds_calls += 1
        return [
            s
            for s in self.stops
            if min_lat <= s.lat <= max_lat and min_lon <= s.lon <= max_lon
        ]


def _stop(stop_id: str, name: str, lat: float, lon: float) -> Stop:
    return Stop(id=stop_id, name=name, location=GeoPoint(lat=lat, lon=lon))


def _platforms() -> list[Stop]:
    return [
        _stop("konak-m", "M1_Konak", 38.41890, 27.12870),
        _stop("konak-bus", "Konak", 38.41900, 27.12900),
        _stop("cankaya", "Çankaya", 38.42300, 27.13700),
        _stop("basmane", "Basmane", 38.42200, 27.14500),
    ]


@pytest.mark.unit
@pytest.mark.anyio
async def test_nearby_stops_sorted_by_distance_within_radius(city_store: InMemoryStopStore) -> None:
    finder = NearbyStopFinder(stop_store=city_store)

    found = await finder.find_nearby_stops(38.4000, 27.1000, radius_m=500.0)

    assert [n.stop.id for n in found] == ["A", "A2"]
    assert found[0].distance_m == 0.0
    assert 200.0 < found[1].distance_m < 250.0


@pytest.mark.unit
@pytest.mark.anyio
async def test_nearby_stops_respects_limit_and_empty_area(city_store: InMemoryStopStore) -> None:
    finder = NearbyStopFinder(stop_store=city_store)

    assert len(await finder.find_nearby_stops(38.4000, 27.1000, radius_m=3000.0, limit=2)) == 2
    assert await finder.find_nearby_stops(10.0, 10.0) == []


@pytest.mark.unit
@pytest.mark.anyio
async def test_nearby_results_are_cached() -> None:
    store = _CountingStore(stops=_platforms())
    finder = NearbyStopFinder(stop_store=store, cache=InMemoryTtlCache())

    first = await finder.find_nearby_stops(38.4190, 27.1290, radius_m=800.0)
    second = await finder.find_nearby_stops(38.4190, 27.1290, radius_m=800.0)

    assert first == second
    assert store.bounds_calls == 1


@pytest.mark.unit
@pytest.mark.anyio
async def test_best_nearby_stops_keep_one_platform_per_station() -> None:
    finder = NearbyStopFinder(stop_store=_CountingStore(stops=_platforms()))

    best = await finder.find_best_nearby_stops(38.4190, 27.1290, count=5, radius_m=2000.0)

    assert [n.stop.id for n in best] == ["konak-bus", "cankaya", "basmane"]


@pytest.mark.unit
@pytest.mark.anyio
async def test_closest_stop_and_walking_distance(city_store: InMemoryStopStore) -> None:
    finder = NearbyStopFinder(stop_store=city_store)

    closest = await finder.find_closest_stop(38.4390, 27.1000)
    assert closest is not None and closest.stop.id == "C"
    assert await finder.find_closest_stop(10.0, 10.0) is None

    assert await finder.is_within_walking_distance(38.4390, 27.1000)
    assert not await finder.is_within_walking_distance(38.7000, 27.1000)


@pytest.mark.unit
def test_walking_time() -> None:
    assert NearbyStopFinder.get_walking_time(0.0) == 0
    assert NearbyStopFinder.get_walking_time(400.0) == 5
