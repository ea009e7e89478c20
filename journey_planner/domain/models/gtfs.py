from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from .geo import GeoPoint
from .stop import Stop


@dataclass(frozen=True, slots=True)
class Route:
    id: str
    short_name: str
    long_name: str
    route_type: int  # GTFS route_type
    color: str  # "#RRGGBB"
    text_color: str  # "#RRGGBB"


@dataclass(frozen=True, slots=True)
class Trip:
    id: str
    route_id: str
    service_id: str
    headsign: str | None = None
    direction_id: int = 0
    shape_id: str | None = None


@dataclass(frozen=True, slots=True)
class StopTime:
    """A scheduled call of a trip at a stop.

    Times are GTFS "HH:MM:SS" strings; hours may exceed 24 for service that
    continues past midnight. Non-timepoint rows carry no times.
    """

    trip_id: str
    stop_id: str
    stop_sequence: int
    arrival_time: str | None = None
    departure_time: str | None = None


@dataclass(frozen=True, slots=True)
class TransferStop:
    """Where riders leave a route of one set for a route of another set.

    Both routes call at the stop itself, unless `board_stop` is set: then the
    second route is boarded at that nearby stop after a short walk.
    """

    stop_id: str
    stop_name: str
    lat: float
    lon: float
    from_route_id: str
    to_route_id: str
    board_stop: Stop | None = None

    @property
    def is_walking_transfer(self) -> bool:
        return self.board_stop is not None


@dataclass(frozen=True, slots=True)
class TripInfo:
    headsign: str


@dataclass(frozen=True, slots=True)
class GtfsFeed:
    """Canonical, validated GTFS data consumed by the stop store."""

    stops_by_id: dict[str, Stop]
    routes_by_id: dict[str, Route]
    trips_by_id: dict[str, Trip]
    # Ordered by strictly increasing stop_sequence.
    stop_times_by_trip: dict[str, tuple[StopTime, ...]]
    shapes_by_id: dict[str, tuple[GeoPoint, ...]] = field(default_factory=dict)


@dataclass(slots=True)
class FeedReport:
    """What happened while normalizing a raw feed."""

    rows_read: Counter[str] = field(default_factory=Counter)
    rows_kept: Counter[str] = field(default_factory=Counter)
    rows_dropped: Counter[str] = field(default_factory=Counter)
    coordinate_repairs: Counter[str] = field(default_factory=Counter)
    synthesized_short_names: int = 0
    defaulted_colors: int = 0
    warnings: list[str] = field(default_factory=list)

    def drop(self, category: str, count: int = 1) -> None:
        self.rows_dropped[category] += count

    def warn(self, message: str) -> None:
        self.warnings.append(message)
