from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable

from .gtfs import Route
from .stop import Stop


class SegmentType(str, Enum):
    WALK = "walk"
    TRANSIT = "transit"


@dataclass(frozen=True, slots=True)
class RouteSegment:
    """One leg of an itinerary."""

    type: SegmentType
    origin: Stop
    destination: Stop
    duration_min: int
    distance_m: int | None = None  # walk legs
    route: Route | None = None  # transit legs
    headsign: str | None = None
    depart_at: datetime | None = None
    arrive_at: datetime | None = None

    @property
    def is_transit(self) -> bool:
        return self.type is SegmentType.TRANSIT

    @staticmethod
    def walk(
        origin: Stop, destination: Stop, *, duration_min: int, distance_m: int
    ) -> "RouteSegment":
        return RouteSegment(
            type=SegmentType.WALK,
            origin=origin,
            destination=destination,
            duration_min=int(duration_min),
            distance_m=int(distance_m),
        )

    @staticmethod
    def transit(
        origin: Stop,
        destination: Stop,
        *,
        route: Route,
        duration_min: int,
        headsign: str | None = None,
    ) -> "RouteSegment":
        return RouteSegment(
            type=SegmentType.TRANSIT,
            origin=origin,
            destination=destination,
            duration_min=int(duration_min),
            route=route,
            headsign=headsign,
        )


@dataclass(frozen=True, slots=True)
class JourneyResult:
    segments: tuple[RouteSegment, ...]
    total_duration_min: int
    total_walk_distance_m: int
    number_of_transfers: int
    depart_at: datetime
    arrive_at: datetime
    tags: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_segments(
        cls,
        segments: Iterable[RouteSegment],
        *,
        depart_at: datetime,
        transfer_penalty_min: int = 0,
    ) -> "JourneyResult":
        """Lay segments out on a timeline starting at depart_at and derive totals.

        Every transit segment after the first one is preceded by the transfer
        penalty, so arrive_at - depart_at always equals total_duration_min.
        """

        timed: list[RouteSegment] = []
        cursor = depart_at
        transit_seen = 0
        walk_m = 0
        for seg in segments:
            if seg.is_transit:
                if transit_seen:
                    cursor += timedelta(minutes=transfer_penalty_min)
                transit_seen += 1
            else:
                walk_m += int(seg.distance_m or 0)
            end = cursor + timedelta(minutes=seg.duration_min)
            timed.append(replace(seg, depart_at=cursor, arrive_at=end))
            cursor = end

        transfers = max(0, transit_seen - 1)
        total = int(round((cursor - depart_at).total_seconds() / 60.0))
        return cls(
            segments=tuple(timed),
            total_duration_min=total,
            total_walk_distance_m=walk_m,
            number_of_transfers=transfers,
            depart_at=depart_at,
            arrive_at=cursor,
        )

    @property
    def transit_segments(self) -> tuple[RouteSegment, ...]:
        return tuple(s for s in self.segments if s.is_transit)

    @property
    def is_walk_only(self) -> bool:
        return all(not s.is_transit for s in self.segments)

    @property
    def route_key(self) -> tuple[str, ...]:
        """Ordered route ids used; identifies the line combination."""

        return tuple(s.route.id for s in self.segments if s.is_transit and s.route)

    def with_tags(self, tags: Iterable[str]) -> "JourneyResult":
        return replace(self, tags=tuple(tags))
