from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

import pytest

from journey_planner.adapters.persistence import InMemoryStopStore
from journey_planner.app.services.journey_planner_service import (
    CURRENT_LOCATION_LABEL,
    VIRTUAL_FROM_ID,
    VIRTUAL_TO_ID,
    JourneyPlannerService,
)
from journey_planner.app.services.journey_search_service import JourneySearchService
from journey_planner.app.services.nearby_stops_service import NearbyStopFinder
from journey_planner.domain.exceptions import (
    AddressNotFound,
    NoRouteFound,
    NoStopsNearLocation,
)
from journey_planner.domain.models import (
    AllowedModes,
    GeocodingResult,
    JourneyResult,
    RoutingPreferences,
)

DEPART = datetime(2024, 5, 6, 8, 0)

# 111 m south of stop A and 111 m north of stop C.
HOME = GeocodingResult(lat=38.3990, lon=27.1000, display_name="Home")
WORK = GeocodingResult(lat=38.4410, lon=27.1000, display_name="Work")
NEAR_ZULU = GeocodingResult(lat=39.0010, lon=27.1000, display_name="Zulu Hill")
NOWHERE = GeocodingResult(lat=10.0, lon=10.0, display_name="Nowhere")


@dataclass
class _FakeGeocoder:
    places: dict[str, GeocodingResult]
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    async def geocode_address(
        self, text: str, country_code: str | None = None, limit: int = 5
    ) -> list[GeocodingResult]:
        self.calls.append((text, country_code))
        place = self.places.get(text)
        return [place] if place else []


class _FlakySearch(JourneySearchService):
    """Search whose store times out for one boarding stop."""

    failing_stop_id = "A"

    async def find_route(
        self, from_stop_id: str, to_stop_id: str, depart_at: datetime | None = None
    ) -> list[JourneyResult]:
        if from_stop_id == self.failing_stop_id:
            raise RuntimeError("stop store timeout")
        return await JourneySearchService.find_route(self, from_stop_id, to_stop_id, depart_at)


def _planner(
    store: InMemoryStopStore, search: JourneySearchService | None = None, **kwargs
) -> JourneyPlannerService:
    return JourneyPlannerService(
        search=search or JourneySearchService(stop_store=store),
        nearby=NearbyStopFinder(stop_store=store),
        geocoder=_FakeGeocoder(places={"home": HOME, "work": WORK, "zulu hill": NEAR_ZULU}),
        **kwargs,
    )


@pytest.mark.unit
@pytest.mark.anyio
async def test_locations_are_connected_with_walking_legs(city_store: InMemoryStopStore) -> None:
    journeys = await _planner(city_store).find_route_from_locations(HOME, WORK, DEPART)

    best = journeys[0]
    assert best.route_key == ("R1",)
    assert [s.type.value for s in best.segments] == ["walk", "transit", "walk"]
    assert best.segments[0].origin.id == VIRTUAL_FROM_ID
    assert best.segments[0].origin.name == "Home"
    assert best.segments[0].destination.id == "A"
    assert best.segments[-1].origin.id == "C"
    assert best.segments[-1].destination.id == VIRTUAL_TO_ID
    # 2 min walk, 9 min metro, 2 min walk.
    assert best.total_duration_min == 13
    assert best.total_walk_distance_m == 222
    assert [j.total_duration_min for j in journeys] == sorted(j.total_duration_min for j in journeys)


@pytest.mark.unit
@pytest.mark.anyio
async def test_locations_results_are_unique_per_line_combination(city_store: InMemoryStopStore) -> None:
    journeys = await _planner(city_store).find_route_from_locations(HOME, WORK, DEPART)

    keys = [j.route_key for j in journeys]
    assert len(keys) == len(set(keys))
    assert set(keys) == {("R1",), ()}


@pytest.mark.unit
@pytest.mark.anyio
async def test_close_locations_are_walked(city_store: InMemoryStopStore) -> None:
    nearby = GeocodingResult(lat=38.4010, lon=27.1000, display_name="Bakery")

    (journey,) = await _planner(city_store).find_route_from_locations(HOME, nearby, DEPART)

    assert journey.is_walk_only
    assert journey.total_walk_distance_m == 222


@pytest.mark.unit
@pytest.mark.anyio
async def test_failed_pair_searches_do_not_fail_the_request(
    city_store: InMemoryStopStore, caplog: pytest.LogCaptureFixture
) -> None:
    planner = _planner(city_store, search=_FlakySearch(stop_store=city_store))

    with caplog.at_level(logging.WARNING):
        journeys = await planner.find_route_from_locations(HOME, WORK, DEPART)

    assert journeys
    assert all(j.segments[0].destination.id != "A" for j in journeys)
    metro = next(j for j in journeys if j.route_key == ("R1",))
    assert metro.segments[1].origin.id == "B"
    assert "stop store timeout" in caplog.text


@pytest.mark.unit
@pytest.mark.anyio
async def test_no_stops_near_origin(city_store: InMemoryStopStore) -> None:
    with pytest.raises(NoStopsNearLocation) as excinfo:
        await _planner(city_store).find_route_from_locations(NOWHERE, WORK, DEPART)

    assert excinfo.value.label == "Nowhere"


@pytest.mark.unit
@pytest.mark.anyio
async def test_no_route_when_unreachable_and_too_far_to_walk(city_store: InMemoryStopStore) -> None:
    with pytest.raises(NoRouteFound):
        await _planner(city_store).find_route_from_locations(NEAR_ZULU, WORK, DEPART)


@pytest.mark.unit
@pytest.mark.anyio
async def test_addresses_offer_walking_and_transit(city_store: InMemoryStopStore) -> None:
    planner = _planner(city_store, default_country_code="tr")

    journeys = await planner.find_route_from_addresses("home", "work", DEPART)

    assert len(journeys) == 2
    assert journeys[0].route_key == ("R1",)
    assert journeys[1].is_walk_only
    assert journeys[1].total_duration_min <= 60
    assert planner.geocoder.calls == [("home", "tr"), ("work", "tr")]


@pytest.mark.unit
@pytest.mark.anyio
async def test_unknown_address_raises(city_store: InMemoryStopStore) -> None:
    with pytest.raises(AddressNotFound) as excinfo:
        await _planner(city_store).find_route_from_addresses("home", "atlantis", DEPART)

    assert excinfo.value.address == "atlantis"


@pytest.mark.unit
@pytest.mark.anyio
async def test_geocoding_requires_a_geocoder(city_store: InMemoryStopStore) -> None:
    planner = JourneyPlannerService(
        search=JourneySearchService(stop_store=city_store),
        nearby=NearbyStopFinder(stop_store=city_store),
    )

    with pytest.raises(RuntimeError):
        await planner.find_route_from_addresses("home", "work", DEPART)


@pytest.mark.unit
@pytest.mark.anyio
async def test_route_from_current_position(city_store: InMemoryStopStore) -> None:
    journeys = await _planner(city_store).find_route_from_coordinates(
        HOME.lat, HOME.lon, "work", DEPART
    )

    assert journeys[0].route_key == ("R1",)
    assert journeys[0].segments[0].origin.name == CURRENT_LOCATION_LABEL


@pytest.mark.unit
@pytest.mark.anyio
async def test_multiple_routes_are_ranked_and_tagged(city_store: InMemoryStopStore) -> None:
    journeys = await _planner(city_store).find_multiple_routes(HOME, WORK, DEPART)

    assert [j.route_key for j in journeys] == [("R1",), ()]
    assert set(journeys[0].tags) == {"fastest", "fewest-transfers", "least-walking", "eco-friendly"}
    assert "fastest" not in journeys[1].tags


@pytest.mark.unit
@pytest.mark.anyio
async def test_multiple_routes_exclude_disallowed_modes(city_store: InMemoryStopStore) -> None:
    prefs = RoutingPreferences(allowed_modes=AllowedModes(metro=False))

    journeys = await _planner(city_store).find_multiple_routes(HOME, WORK, DEPART, prefs)

    assert journeys
    assert all(j.is_walk_only for j in journeys)


@pytest.mark.unit
@pytest.mark.anyio
async def test_multiple_routes_always_return_something(city_store: InMemoryStopStore) -> None:
    prefs = RoutingPreferences(
        allowed_modes=AllowedModes(
            metro=False, train=False, tram=False, bus=False, ferry=False, walking=False
        )
    )

    journeys = await _planner(city_store).find_multiple_routes(HOME, WORK, DEPART, prefs)

    assert len(journeys) == 1
    # The fastest candidate, not the slower walk.
    assert journeys[0].route_key == ("R1",)


@pytest.mark.unit
@pytest.mark.anyio
async def test_multiple_routes_respect_max_routes(city_store: InMemoryStopStore) -> None:
    journeys = await _planner(city_store).find_multiple_routes(
        HOME, WORK, DEPART, max_routes=1
    )

    assert [j.route_key for j in journeys] == [("R1",)]


@pytest.mark.unit
@pytest.mark.anyio
async def test_multiple_routes_without_any_route_is_empty(city_store: InMemoryStopStore) -> None:
    assert await _planner(city_store).find_multiple_routes(NEAR_ZULU, WORK, DEPART) == []


@pytest.mark.unit
@pytest.mark.anyio
async def test_multiple_routes_from_addresses(city_store: InMemoryStopStore) -> None:
    journeys = await _planner(city_store).find_multiple_routes_from_addresses(
        "home", "work", DEPART, RoutingPreferences(max_walking_distance_m=300.0)
    )

    assert journeys[0].route_key == ("R1",)
