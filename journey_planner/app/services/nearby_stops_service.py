from __future__ import annotations

import logging
from dataclasses import dataclass

from journey_planner.app.ports.output import ICache, IStopStore
from journey_planner.domain.algorithms.geo_utils import (
    bounding_box,
    distance_m,
    walking_time_min,
)
from journey_planner.domain.algorithms.station_names import normalize_station_name
from journey_planner.domain.models import NearbyStop

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NearbyStopFinder:
    """Distance-ranked boarding stops around a coordinate.

    "Nothing nearby" is an empty list; store failures propagate.
    """

    stop_store: IStopStore
    cache: ICache | None = None
    cache_ttl_s: float = 300.0

    # Candidates fetched per requested stop before station dedup.
    dedup_overfetch: int = 5

    async def find_nearby_stops(
        self, lat: float, lon: float, radius_m: float = 500.0, limit: int = 10
    ) -> list[NearbyStop]:
        key = f"nearby:{lat:.4f}:{lon:.4f}:{int(radius_m)}:{limit}"
        if self.cache is not None:
            cached = await self.cache.get(key, self.cache_ttl_s)
            if cached is not None:
                return list(cached)

        min_lat, min_lon, max_lat, max_lon = bounding_box(lat, lon, radius_m)
        stops = await self.stop_store.get_stops_in_bounds(min_lat, min_lon, max_lat, max_lon)

        nearby = [
            NearbyStop(stop=s, distance_m=distance_m(lat, lon, s.lat, s.lon)) for s in stops
        ]
        nearby = [n for n in nearby if n.distance_m <= radius_m]
        nearby.sort(key=lambda n: (n.distance_m, n.stop.id))
        nearby = nearby[: max(0, limit)]

        if self.cache is not None:
            await self.cache.set(key, tuple(nearby))
        return nearby

    async def find_best_nearby_stops(
        self, lat: float, lon: float, count: int = 5, radius_m: float = 800.0
    ) -> list[NearbyStop]:
        """Closest stop per station, so platforms of one station do not crowd out others."""

        candidates = await self.find_nearby_stops(
            lat, lon, radius_m=radius_m, limit=count * self.dedup_overfetch
        )

        by_station: dict[str, NearbyStop] = {}
        for n in candidates:
            by_station.setdefault(normalize_station_name(n.stop.name), n)

        unique = sorted(by_station.values(), key=lambda n: n.distance_m)[:count]
        logger.debug(
            "Deduplicated %s nearby stops to %s stations", len(candidates), len(unique)
        )
        return unique

    async def find_closest_stop(
        self, lat: float, lon: float, max_distance_m: float = 1000.0
    ) -> NearbyStop | None:
        found = await self.find_nearby_stops(lat, lon, radius_m=max_distance_m, limit=1)
        return found[0] if found else None

    async def is_within_walking_distance(
        self, lat: float, lon: float, max_walking_distance_m: float = 800.0
    ) -> bool:
        return bool(
            await self.find_nearby_stops(lat, lon, radius_m=max_walking_distance_m, limit=1)
        )

    @staticmethod
    def get_walking_time(distance_meters: float) -> int:
        return walking_time_min(distance_meters)
