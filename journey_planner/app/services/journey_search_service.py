from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from journey_planner.app.ports.output import IStopStore
from journey_planner.domain.algorithms.geo_utils import (
    distance_m,
    round_half_up,
    walking_time_min,
)
from journey_planner.domain.algorithms.travel_time import TravelTimeEstimator
from journey_planner.domain.exceptions import StopNotFound
from journey_planner.domain.models import (
    GeoPoint,
    JourneyResult,
    Route,
    RouteSegment,
    Stop,
    TransferStop,
)

logger = logging.getLogger(__name__)


def walk_segment(origin: Stop, destination: Stop) -> RouteSegment:
    d = distance_m(origin.lat, origin.lon, destination.lat, destination.lon)
    return RouteSegment.walk(
        origin,
        destination,
        duration_min=walking_time_min(d),
        distance_m=round_half_up(d),
    )


def walk_journey(origin: Stop, destination: Stop, depart_at: datetime) -> JourneyResult:
    """Single walking leg between two places."""

    return JourneyResult.from_segments([walk_segment(origin, destination)], depart_at=depart_at)


def _stop_from_transfer(t: TransferStop) -> Stop:
    return Stop(id=t.stop_id, name=t.stop_name, location=GeoPoint(lat=t.lat, lon=t.lon))


def _change_legs(
    first: Route, origin: Stop, t: TransferStop, second: Route, destination: Stop
) -> tuple[tuple[Route | None, Stop, Stop], ...]:
    """Ride `first` to the transfer stop, walk over if needed, ride `second` on."""

    alight = _stop_from_transfer(t)
    if t.board_stop is None:
        return ((first, origin, alight), (second, alight, destination))
    return (
        (first, origin, alight),
        (None, alight, t.board_stop),
        (second, t.board_stop, destination),
    )


def _dist(a: Stop, b: Stop) -> float:
    return distance_m(a.lat, a.lon, b.lat, b.lon)


@dataclass(frozen=True, slots=True)
class _TransferPlan:
    """Ordered legs (route, board, alight) of one transfer candidate; no route means walk."""

    legs: tuple[tuple[Route | None, Stop, Stop], ...]
    distance_m: float


@dataclass(slots=True)
class JourneySearchService:
    """Bounded heuristic search between two known stops.

    Tries, in order and only while the previous step found nothing: a direct
    line, one transfer, two transfers. Journeys with absurd durations are
    dropped as data noise; when nothing survives, walking is offered if it is
    short enough, otherwise the result is empty.
    """

    stop_store: IStopStore
    estimator: TravelTimeEstimator = field(default_factory=TravelTimeEstimator)

    # Tuning knobs
    walk_short_circuit_m: float = 500.0
    max_direct_routes: int = 3
    max_transfer_candidates: int = 5
    max_one_transfer_results: int = 3
    max_two_transfer_results: int = 2
    max_origin_routes_explored: int = 5
    transfer_query_limit: int = 50
    max_journey_duration_min: int = 180
    max_walking_duration_min: int = 60

    async def find_route(
        self, from_stop_id: str, to_stop_id: str, depart_at: datetime | None = None
    ) -> list[JourneyResult]:
        depart_at = depart_at or datetime.now()

        from_stop, to_stop = await asyncio.gather(
            self.stop_store.get_stop_by_id(from_stop_id),
            self.stop_store.get_stop_by_id(to_stop_id),
        )
        if from_stop is None:
            raise StopNotFound(from_stop_id)
        if to_stop is None:
            raise StopNotFound(to_stop_id)

        if from_stop.id == to_stop.id:
            segment = RouteSegment.walk(from_stop, to_stop, duration_min=0, distance_m=0)
            return [JourneyResult.from_segments([segment], depart_at=depart_at)]

        direct_distance = _dist(from_stop, to_stop)
        if direct_distance < self.walk_short_circuit_m:
            return [walk_journey(from_stop, to_stop, depart_at)]

        from_routes, to_routes = await asyncio.gather(
            self.stop_store.get_routes_by_stop_id(from_stop.id),
            self.stop_store.get_routes_by_stop_id(to_stop.id),
        )

        journeys = await self._direct(from_stop, to_stop, from_routes, to_routes, depart_at)
        if not journeys and from_routes and to_routes:
            logger.debug("No direct route %s -> %s, looking for one transfer", from_stop.id, to_stop.id)
            journeys = await self._one_transfer(
                from_stop, to_stop, from_routes, to_routes, depart_at
            )
        if not journeys and from_routes and to_routes:
            logger.debug("No one-transfer route %s -> %s, looking for two", from_stop.id, to_stop.id)
            journeys = await self._two_transfers(
                from_stop, to_stop, from_routes, to_routes, depart_at
            )

        valid = self.drop_absurd(journeys)
        if valid:
            return valid

        walk = walk_journey(from_stop, to_stop, depart_at)
        if walk.total_duration_min <= self.max_walking_duration_min:
            return [walk]
        logger.warning(
            "No route %s -> %s and walking takes %s min (%sm)",
            from_stop.id,
            to_stop.id,
            walk.total_duration_min,
            round_half_up(direct_distance),
        )
        return []

    def drop_absurd(self, journeys: Iterable[JourneyResult]) -> list[JourneyResult]:
        valid: list[JourneyResult] = []
        for j in journeys:
            if j.total_duration_min > self.max_journey_duration_min:
                logger.warning(
                    "Dropping journey over routes %s: %s min exceeds %s min",
                    "-".join(j.route_key) or "walk",
                    j.total_duration_min,
                    self.max_journey_duration_min,
                )
                continue
            valid.append(j)
        return valid

    async def transit_segment(self, route: Route, origin: Stop, destination: Stop) -> RouteSegment:
        """Schedule-based duration when the store knows one, heuristic otherwise."""

        scheduled, trip_info = await asyncio.gather(
            self.stop_store.get_actual_travel_time(route.id, origin.id, destination.id),
            self.stop_store.get_trip_info_for_route(route.id, destination.id, origin.id),
        )
        minutes = self.estimator.segment_minutes(
            route.route_type, _dist(origin, destination), scheduled
        )
        return RouteSegment.transit(
            origin,
            destination,
            route=route,
            duration_min=minutes,
            headsign=trip_info.headsign if trip_info else None,
        )

    async def _leg(self, route: Route | None, origin: Stop, destination: Stop) -> RouteSegment:
        if route is None:
            return walk_segment(origin, destination)
        return await self.transit_segment(route, origin, destination)

    async def _build(self, plan: _TransferPlan, depart_at: datetime) -> JourneyResult:
        segments = await asyncio.gather(
            *(self._leg(route, a, b) for route, a, b in plan.legs)
        )
        return JourneyResult.from_segments(
            segments,
            depart_at=depart_at,
            transfer_penalty_min=self.estimator.transfer_penalty_min,
        )

    async def _direct(
        self,
        from_stop: Stop,
        to_stop: Stop,
        from_routes: Sequence[Route],
        to_routes: Sequence[Route],
        depart_at: datetime,
    ) -> list[JourneyResult]:
        from_ids = {r.id for r in from_routes}
        common = [r for r in to_routes if r.id in from_ids][: self.max_direct_routes]
        plans = [
            _TransferPlan(legs=((r, from_stop, to_stop),), distance_m=_dist(from_stop, to_stop))
            for r in common
        ]
        return list(await asyncio.gather(*(self._build(p, depart_at) for p in plans)))

    async def _one_transfer(
        self,
        from_stop: Stop,
        to_stop: Stop,
        from_routes: Sequence[Route],
        to_routes: Sequence[Route],
        depart_at: datetime,
    ) -> list[JourneyResult]:
        routes = {r.id: r for r in (*from_routes, *to_routes)}
        transfers = await self.stop_store.find_transfer_stops(
            [r.id for r in from_routes],
            [r.id for r in to_routes],
            limit=self.transfer_query_limit,
        )

        # Best transfer point per route pair: least detour.
        best: dict[tuple[str, str], _TransferPlan] = {}
        for t in transfers:
            board = t.board_stop or _stop_from_transfer(t)
            if {t.stop_id, board.id} & {from_stop.id, to_stop.id}:
                continue
            point = _stop_from_transfer(t)
            detour = _dist(from_stop, point) + _dist(point, board) + _dist(board, to_stop)
            key = (t.from_route_id, t.to_route_id)
            if key in best and best[key].distance_m <= detour:
                continue
            best[key] = _TransferPlan(
                legs=_change_legs(
                    routes[t.from_route_id], from_stop, t, routes[t.to_route_id], to_stop
                ),
                distance_m=detour,
            )

        plans = sorted(best.values(), key=lambda p: p.distance_m)[: self.max_transfer_candidates]
        journeys = list(await asyncio.gather(*(self._build(p, depart_at) for p in plans)))
        journeys.sort(key=lambda j: j.total_duration_min)
        return journeys[: self.max_one_transfer_results]

    async def _two_transfers(
        self,
        from_stop: Stop,
        to_stop: Stop,
        from_routes: Sequence[Route],
        to_routes: Sequence[Route],
        depart_at: datetime,
    ) -> list[JourneyResult]:
        excluded = {r.id for r in from_routes} | {r.id for r in to_routes}
        to_by_id = {r.id: r for r in to_routes}
        origin_routes = list(from_routes)[: self.max_origin_routes_explored]

        stops_per_route = await asyncio.gather(
            *(self.stop_store.get_stops_by_route_id(r.id) for r in origin_routes)
        )

        # Stops on the origin routes where a rider could change lines.
        first_changes: list[tuple[Route, Stop]] = []
        seen: set[tuple[str, str]] = set()
        for route, stops in zip(origin_routes, stops_per_route):
            for s in stops:
                if s.id in (from_stop.id, to_stop.id) or (route.id, s.id) in seen:
                    continue
                seen.add((route.id, s.id))
                first_changes.append((route, s))

        routes_at = await asyncio.gather(
            *(self.stop_store.get_routes_by_stop_id(s.id) for _, s in first_changes)
        )

        # Intermediate route -> every (origin route, change stop) reaching it.
        intermediate: dict[str, list[tuple[Route, Stop]]] = {}
        intermediate_routes: dict[str, Route] = {}
        for (r1, s1), serving in zip(first_changes, routes_at):
            for r2 in serving:
                if r2.id in excluded:
                    continue
                intermediate.setdefault(r2.id, []).append((r1, s1))
                intermediate_routes[r2.id] = r2

        if not intermediate:
            return []

        transfers = await self.stop_store.find_transfer_stops(
            list(intermediate),
            list(to_by_id),
            limit=self.transfer_query_limit,
        )

        best: dict[tuple[str, str, str], _TransferPlan] = {}
        for t in transfers:
            board = t.board_stop or _stop_from_transfer(t)
            if {t.stop_id, board.id} & {from_stop.id, to_stop.id}:
                continue
            s2 = _stop_from_transfer(t)
            r2 = intermediate_routes[t.from_route_id]
            r3 = to_by_id[t.to_route_id]
            for r1, s1 in intermediate[t.from_route_id]:
                if s1.id == s2.id:
                    continue
                detour = (
                    _dist(from_stop, s1)
                    + _dist(s1, s2)
                    + _dist(s2, board)
                    + _dist(board, to_stop)
                )
                key = (r1.id, r2.id, r3.id)
                if key in best and best[key].distance_m <= detour:
                    continue
                best[key] = _TransferPlan(
                    legs=((r1, from_stop, s1), *_change_legs(r2, s1, t, r3, to_stop)),
                    distance_m=detour,
                )

        plans = sorted(best.values(), key=lambda p: p.distance_m)[: self.max_transfer_candidates]
        journeys = list(await asyncio.gather(*(self._build(p, depart_at) for p in plans)))
        journeys.sort(key=lambda j: j.total_duration_min)
        return journeys[: self.max_two_transfer_results]
