from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from itertools import product
from typing import Sequence

from journey_planner.app.ports.output import IGeocoder
from journey_planner.domain.algorithms.geo_utils import (
    distance_m,
    round_half_up,
    walking_time_min,
)
from journey_planner.domain.algorithms.journey_scoring import (
    ScoringStrategy,
    rank_journeys,
    weighted_score,
)
from journey_planner.domain.exceptions import (
    AddressNotFound,
    NoRouteFound,
    NoStopsNearLocation,
)
from journey_planner.domain.models import (
    DEFAULT_PREFERENCES,
    GeocodingResult,
    JourneyResult,
    NearbyStop,
    RouteSegment,
    RoutingPreferences,
    Stop,
)

from .journey_search_service import JourneySearchService, walk_journey
from .nearby_stops_service import NearbyStopFinder

logger = logging.getLogger(__name__)

VIRTUAL_FROM_ID = "virtual_from"
VIRTUAL_TO_ID = "virtual_to"
CURRENT_LOCATION_LABEL = "Current Location"


def virtual_stop(stop_id: str, location: GeocodingResult) -> Stop:
    """Synthetic stop standing for a free-form address or coordinate."""

    return Stop(id=stop_id, name=location.label, location=location.point)


def dedupe_by_route_key(journeys: Sequence[JourneyResult]) -> list[JourneyResult]:
    """Fastest journey per ordered line combination, sorted by duration."""

    unique: dict[tuple[str, ...], JourneyResult] = {}
    for j in sorted(journeys, key=lambda j: j.total_duration_min):
        unique.setdefault(j.route_key, j)
    return list(unique.values())


@dataclass(slots=True)
class JourneyPlannerService:
    """Journey API between free-form locations.

    Resolves addresses, picks candidate stops around both endpoints, runs the
    stop-to-stop search over every candidate pair concurrently and wraps the
    results with walking legs to and from the real endpoints.
    """

    search: JourneySearchService
    nearby: NearbyStopFinder
    geocoder: IGeocoder | None = None
    scorer: ScoringStrategy = field(default=weighted_score)

    # Tuning knobs
    candidate_radius_m: float = 2500.0
    max_candidate_stops: int = 5
    max_location_results: int = 5
    max_address_transit_results: int = 2
    transit_search_min_distance_m: float = 800.0
    default_country_code: str | None = None

    async def geocode(self, text: str, country_code: str | None) -> GeocodingResult:
        if self.geocoder is None:
            raise RuntimeError("Geocoder not configured")
        results = await self.geocoder.geocode_address(
            text, country_code or self.default_country_code, 1
        )
        if not results:
            raise AddressNotFound(text)
        return results[0]

    async def _geocode_pair(
        self, from_text: str, to_text: str, country_code: str | None
    ) -> tuple[GeocodingResult, GeocodingResult]:
        origin, destination = await asyncio.gather(
            self.geocode(from_text, country_code),
            self.geocode(to_text, country_code),
        )
        return origin, destination

    async def _candidate_stops(
        self, origin: GeocodingResult, destination: GeocodingResult
    ) -> tuple[list[NearbyStop], list[NearbyStop]]:
        from_stops, to_stops = await asyncio.gather(
            self.nearby.find_best_nearby_stops(
                origin.lat, origin.lon, self.max_candidate_stops, self.candidate_radius_m
            ),
            self.nearby.find_best_nearby_stops(
                destination.lat, destination.lon, self.max_candidate_stops, self.candidate_radius_m
            ),
        )
        return from_stops, to_stops

    def _with_access_legs(
        self,
        origin: Stop,
        board: NearbyStop,
        inner: JourneyResult,
        alight: NearbyStop,
        destination: Stop,
        depart_at: datetime,
    ) -> JourneyResult:
        segments: list[RouteSegment] = []
        if board.distance_m > 0:
            segments.append(
                RouteSegment.walk(
                    origin,
                    board.stop,
                    duration_min=walking_time_min(board.distance_m),
                    distance_m=round_half_up(board.distance_m),
                )
            )
        # Zero-length walks come from boarding and alighting at the same stop.
        segments.extend(s for s in inner.segments if s.is_transit or s.distance_m)
        if alight.distance_m > 0:
            segments.append(
                RouteSegment.walk(
                    alight.stop,
                    destination,
                    duration_min=walking_time_min(alight.distance_m),
                    distance_m=round_half_up(alight.distance_m),
                )
            )
        if not segments:
            segments.append(RouteSegment.walk(origin, destination, duration_min=0, distance_m=0))
        return JourneyResult.from_segments(
            segments,
            depart_at=depart_at,
            transfer_penalty_min=self.search.estimator.transfer_penalty_min,
        )

    async def _search_pairs(
        self,
        origin: Stop,
        destination: Stop,
        from_stops: Sequence[NearbyStop],
        to_stops: Sequence[NearbyStop],
        depart_at: datetime,
    ) -> list[JourneyResult]:
        pairs = list(product(from_stops, to_stops))
        logger.debug("Searching %s candidate stop pairs", len(pairs))
        outcomes = await asyncio.gather(
            *(self.search.find_route(a.stop.id, b.stop.id, depart_at) for a, b in pairs),
            return_exceptions=True,
        )

        journeys: list[JourneyResult] = []
        for (board, alight), outcome in zip(pairs, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(
                    "Route search %s -> %s failed: %s", board.stop.id, alight.stop.id, outcome
                )
                continue
            for inner in outcome:
                journeys.append(
                    self._with_access_legs(origin, board, inner, alight, destination, depart_at)
                )
        return self.search.drop_absurd(journeys)

    def _walk_if_reasonable(
        self, origin: Stop, destination: Stop, depart_at: datetime
    ) -> JourneyResult | None:
        walk = walk_journey(origin, destination, depart_at)
        if walk.total_duration_min <= self.search.max_walking_duration_min:
            return walk
        return None

    async def find_route_from_locations(
        self,
        origin: GeocodingResult,
        destination: GeocodingResult,
        depart_at: datetime | None = None,
    ) -> list[JourneyResult]:
        depart_at = depart_at or datetime.now()
        from_v = virtual_stop(VIRTUAL_FROM_ID, origin)
        to_v = virtual_stop(VIRTUAL_TO_ID, destination)

        direct = distance_m(origin.lat, origin.lon, destination.lat, destination.lon)
        if direct < self.search.walk_short_circuit_m:
            return [walk_journey(from_v, to_v, depart_at)]

        from_stops, to_stops = await self._candidate_stops(origin, destination)
        if not from_stops:
            raise NoStopsNearLocation(origin.label, self.candidate_radius_m)
        if not to_stops:
            raise NoStopsNearLocation(destination.label, self.candidate_radius_m)

        journeys = await self._search_pairs(from_v, to_v, from_stops, to_stops, depart_at)
        journeys = dedupe_by_route_key(journeys)[: self.max_location_results]
        if journeys:
            logger.info("Found %s journey options from %s to %s", len(journeys), origin.label, destination.label)
            return journeys

        walk = self._walk_if_reasonable(from_v, to_v, depart_at)
        if walk is not None:
            return [walk]
        raise NoRouteFound(f"No reasonable route from {origin.label} to {destination.label}")

    async def find_route_from_addresses(
        self,
        from_text: str,
        to_text: str,
        depart_at: datetime | None = None,
        country_code: str | None = None,
    ) -> list[JourneyResult]:
        """Walking when under the walking ceiling, plus the best transit options."""

        depart_at = depart_at or datetime.now()
        origin, destination = await self._geocode_pair(from_text, to_text, country_code)
        from_v = virtual_stop(VIRTUAL_FROM_ID, origin)
        to_v = virtual_stop(VIRTUAL_TO_ID, destination)

        journeys: list[JourneyResult] = []
        walk = self._walk_if_reasonable(from_v, to_v, depart_at)
        if walk is not None:
            journeys.append(walk)

        direct = distance_m(origin.lat, origin.lon, destination.lat, destination.lon)
        if direct > self.transit_search_min_distance_m:
            from_stops, to_stops = await self._candidate_stops(origin, destination)
            if from_stops and to_stops:
                found = await self._search_pairs(from_v, to_v, from_stops, to_stops, depart_at)
                transit = [j for j in dedupe_by_route_key(found) if not j.is_walk_only]
                journeys.extend(transit[: self.max_address_transit_results])
            elif not journeys:
                missing = origin if not from_stops else destination
                raise NoStopsNearLocation(missing.label, self.candidate_radius_m)
            else:
                logger.info("No stops near the endpoints, offering walking only")

        if not journeys:
            raise NoRouteFound(f"No reasonable route from {origin.label} to {destination.label}")
        journeys.sort(key=lambda j: j.total_duration_min)
        return journeys

    async def find_route_from_coordinates(
        self,
        lat: float,
        lon: float,
        to_address: str,
        depart_at: datetime | None = None,
        country_code: str | None = None,
    ) -> list[JourneyResult]:
        destination = await self.geocode(to_address, country_code)
        origin = GeocodingResult(lat=lat, lon=lon, display_name=CURRENT_LOCATION_LABEL)
        return await self.find_route_from_locations(origin, destination, depart_at)

    async def find_multiple_routes(
        self,
        origin: GeocodingResult,
        destination: GeocodingResult,
        depart_at: datetime | None = None,
        preferences: RoutingPreferences = DEFAULT_PREFERENCES,
        max_routes: int = 3,
    ) -> list[JourneyResult]:
        """Preference-filtered, scored and tagged journeys.

        "No route" is an empty list here; missing nearby stops still raise.
        """

        try:
            base = await self.find_route_from_locations(origin, destination, depart_at)
        except NoRouteFound:
            return []
        logger.debug(
            "Ranking %s base journeys for %s", len(base), preferences.optimize_for.value
        )
        return rank_journeys(base, preferences, max_routes, scorer=self.scorer)

    async def find_multiple_routes_from_addresses(
        self,
        from_text: str,
        to_text: str,
        depart_at: datetime | None = None,
        preferences: RoutingPreferences = DEFAULT_PREFERENCES,
        country_code: str | None = None,
        max_routes: int = 3,
    ) -> list[JourneyResult]:
        origin, destination = await self._geocode_pair(from_text, to_text, country_code)
        return await self.find_multiple_routes(
            origin, destination, depart_at, preferences, max_routes
        )
