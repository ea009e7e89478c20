from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Sequence

from journey_planner.app.ports.output import IStopStore
from journey_planner.domain.algorithms.geo_utils import distance_m
from journey_planner.domain.algorithms.gtfs_normalizer import parse_gtfs_time_to_seconds
from journey_planner.domain.algorithms.station_names import normalize_station_name
from journey_planner.domain.models import (
    GtfsFeed,
    Route,
    Stop,
    StopTime,
    TransferStop,
    TripInfo,
)


@dataclass(slots=True)
class InMemoryStopStore(IStopStore):
    """Stop store over an indexed, normalized GTFS feed.

    Platforms are treated as one place when they share a parent station, or
    when they carry the same normalized station name within
    `colocation_radius_m` of each other. Route pairs that share no such
    place can still change on foot between stops up to `transfer_radius_m`
    apart.
    """

    feed: GtfsFeed
    colocation_radius_m: float = 100.0
    transfer_radius_m: float = 500.0

    _route_ids_by_stop: dict[str, set[str]] = field(default_factory=dict, init=False, repr=False)
    _stop_ids_by_route: dict[str, list[str]] = field(default_factory=dict, init=False, repr=False)
    _trip_ids_by_route: dict[str, list[str]] = field(default_factory=dict, init=False, repr=False)
    _stop_ids_by_station: dict[str, list[str]] = field(default_factory=dict, init=False, repr=False)
    _stop_ids_by_parent: dict[str, list[str]] = field(default_factory=dict, init=False, repr=False)
    _colocated_cache: dict[str, tuple[str, ...]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        for trip in self.feed.trips_by_id.values():
            self._trip_ids_by_route.setdefault(trip.route_id, []).append(trip.id)

        for route_id, trip_ids in self._trip_ids_by_route.items():
            ordered: list[str] = []
            seen: set[str] = set()
            for trip_id in trip_ids:
                for st in self.feed.stop_times_by_trip.get(trip_id, ()):
                    self._route_ids_by_stop.setdefault(st.stop_id, set()).add(route_id)
                    if st.stop_id not in seen:
                        seen.add(st.stop_id)
                        ordered.append(st.stop_id)
            self._stop_ids_by_route[route_id] = ordered

        for stop in self.feed.stops_by_id.values():
            key = normalize_station_name(stop.name)
            self._stop_ids_by_station.setdefault(key, []).append(stop.id)
            if stop.parent_station:
                self._stop_ids_by_parent.setdefault(stop.parent_station, []).append(stop.id)

    @classmethod
    def from_feed(cls, feed: GtfsFeed, **kwargs) -> "InMemoryStopStore":
        return cls(feed=feed, **kwargs)

    def _colocated_stop_ids(self, stop: Stop) -> tuple[str, ...]:
        cached = self._colocated_cache.get(stop.id)
        if cached is not None:
            return cached

        ids: list[str] = [stop.id]
        if stop.parent_station:
            ids.extend(self._stop_ids_by_parent.get(stop.parent_station, ()))
        for other_id in self._stop_ids_by_station.get(normalize_station_name(stop.name), ()):
            other = self.feed.stops_by_id[other_id]
            if (
                distance_m(stop.lat, stop.lon, other.lat, other.lon)
                <= self.colocation_radius_m
            ):
                ids.append(other_id)

        result = tuple(dict.fromkeys(ids))
        self._colocated_cache[stop.id] = result
        return result

    def _station_route_ids(self, stop: Stop) -> set[str]:
        route_ids: set[str] = set()
        for sid in self._colocated_stop_ids(stop):
            route_ids |= self._route_ids_by_stop.get(sid, set())
        return route_ids

    @staticmethod
    def _closest_within(stop: Stop, candidates: Sequence[Stop], radius_m: float) -> Stop | None:
        best: Stop | None = None
        best_d = radius_m
        for other in candidates:
            d = distance_m(stop.lat, stop.lon, other.lat, other.lon)
            if d <= best_d:
                best, best_d = other, d
        return best

    async def get_stop_by_id(self, stop_id: str) -> Stop | None:
        return self.feed.stops_by_id.get(stop_id)

    async def get_stops_in_bounds(
        self, min_lat: float, min_lon: float, max_lat: float, max_lon: float
    ) -> list[Stop]:
        return [
            s
            for s in self.feed.stops_by_id.values()
            if s.location_type == 0
            and min_lat <= s.lat <= max_lat
            and min_lon <= s.lon <= max_lon
        ]

    async def get_routes_by_stop_id(self, stop_id: str) -> list[Route]:
        stop = self.feed.stops_by_id.get(stop_id)
        if stop is None:
            return []
        return [self.feed.routes_by_id[rid] for rid in sorted(self._station_route_ids(stop))]

    async def get_stops_by_route_id(self, route_id: str) -> list[Stop]:
        return [
            self.feed.stops_by_id[sid] for sid in self._stop_ids_by_route.get(route_id, ())
        ]

    async def find_transfer_stops(
        self,
        from_route_ids: Sequence[str],
        to_route_ids: Sequence[str],
        *,
        limit: int = 20,
    ) -> list[TransferStop]:
        to_set = set(to_route_ids)
        by_pair: dict[tuple[str, str], list[TransferStop]] = {}

        for from_route_id in dict.fromkeys(from_route_ids):
            for sid in self._stop_ids_by_route.get(from_route_id, ()):
                stop = self.feed.stops_by_id[sid]
                reachable = self._station_route_ids(stop) & to_set
                reachable.discard(from_route_id)
                for to_route_id in sorted(reachable):
                    by_pair.setdefault((from_route_id, to_route_id), []).append(
                        TransferStop(
                            stop_id=stop.id,
                            stop_name=stop.name,
                            lat=stop.lat,
                            lon=stop.lon,
                            from_route_id=from_route_id,
                            to_route_id=to_route_id,
                        )
                    )

        # Pairs with no shared station: change on foot to the closest stop of
        # the second route within transfer_radius_m.
        for from_route_id in dict.fromkeys(from_route_ids):
            for to_route_id in sorted(to_set - {from_route_id}):
                if (from_route_id, to_route_id) in by_pair:
                    continue
                boarding = [
                    self.feed.stops_by_id[sid]
                    for sid in self._stop_ids_by_route.get(to_route_id, ())
                ]
                for sid in self._stop_ids_by_route.get(from_route_id, ()):
                    stop = self.feed.stops_by_id[sid]
                    board = self._closest_within(stop, boarding, self.transfer_radius_m)
                    if board is None:
                        continue
                    by_pair.setdefault((from_route_id, to_route_id), []).append(
                        TransferStop(
                            stop_id=stop.id,
                            stop_name=stop.name,
                            lat=stop.lat,
                            lon=stop.lon,
                            from_route_id=from_route_id,
                            to_route_id=to_route_id,
                            board_stop=board,
                        )
                    )

        # Interleave pairs so one busy route pair cannot use up the whole limit.
        out: list[TransferStop] = []
        queues = list(by_pair.values())
        depth = 0
        while len(out) < limit and any(depth < len(q) for q in queues):
            for q in queues:
                if depth < len(q):
                    out.append(q[depth])
                    if len(out) >= limit:
                        break
            depth += 1
        return out

    def _calls(self, trip_id: str) -> tuple[StopTime, ...]:
        return self.feed.stop_times_by_trip.get(trip_id, ())

    async def get_actual_travel_time(
        self, route_id: str, from_stop_id: str, to_stop_id: str
    ) -> float | None:
        samples: list[float] = []
        for trip_id in self._trip_ids_by_route.get(route_id, ()):
            board: StopTime | None = None
            for st in self._calls(trip_id):
                if board is None:
                    if st.stop_id == from_stop_id:
                        board = st
                    continue
                if st.stop_id == to_stop_id:
                    if board.departure_time and st.arrival_time:
                        delta = parse_gtfs_time_to_seconds(
                            st.arrival_time
                        ) - parse_gtfs_time_to_seconds(board.departure_time)
                        if delta >= 0:
                            samples.append(delta / 60.0)
                    break

        if not samples:
            return None
        return float(statistics.median(samples))

    def _headsign(self, trip_id: str) -> str | None:
        trip = self.feed.trips_by_id[trip_id]
        if trip.headsign:
            return trip.headsign
        calls = self._calls(trip_id)
        if calls:
            last = self.feed.stops_by_id.get(calls[-1].stop_id)
            return last.name if last else None
        return None

    async def get_trip_info_for_route(
        self, route_id: str, toward_stop_id: str, from_stop_id: str | None = None
    ) -> TripInfo | None:
        fallback: str | None = None
        for trip_id in self._trip_ids_by_route.get(route_id, ()):
            stop_ids = [st.stop_id for st in self._calls(trip_id)]
            if toward_stop_id not in stop_ids:
                continue
            headsign = self._headsign(trip_id)
            if not headsign:
                continue
            if from_stop_id is None or (
                from_stop_id in stop_ids
                and stop_ids.index(from_stop_id) < stop_ids.index(toward_stop_id)
            ):
                return TripInfo(headsign=headsign)
            if fallback is None:
                fallback = headsign
        return TripInfo(headsign=fallback) if fallback else None
