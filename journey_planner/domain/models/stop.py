from __future__ import annotations

from dataclasses import dataclass

from .geo import GeoPoint


@dataclass(frozen=True, slots=True)
class Stop:
    id: str
    name: str
    location: GeoPoint
    location_type: int = 0  # 0=stop/platform, 1=station, 2=entrance
    parent_station: str | None = None

    @property
    def lat(self) -> float:
        return self.location.lat

    @property
    def lon(self) -> float:
        return self.location.lon


@dataclass(frozen=True, slots=True)
class NearbyStop:
    """A stop together with its great-circle distance from a search point."""

    stop: Stop
    distance_m: float
