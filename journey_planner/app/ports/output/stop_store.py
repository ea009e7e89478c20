from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from journey_planner.domain.models import Route, Stop, TransferStop, TripInfo


class IStopStore(ABC):
    """Port for querying stops, routes and schedules, whatever the storage engine.

    The store is read-only while a search runs. Methods return empty results
    for "nothing found" and only raise on I/O failure.
    """

    @abstractmethod
    async def get_stop_by_id(self, stop_id: str) -> Stop | None:
        raise NotImplementedError

    @abstractmethod
    async def get_stops_in_bounds(
        self, min_lat: float, min_lon: float, max_lat: float, max_lon: float
    ) -> list[Stop]:
        """Boarding stops (location_type 0) inside the box."""

        raise NotImplementedError

    @abstractmethod
    async def get_routes_by_stop_id(self, stop_id: str) -> list[Route]:
        """Routes serving a stop, including co-located platforms of the same station."""

        raise NotImplementedError

    @abstractmethod
    async def get_stops_by_route_id(self, route_id: str) -> list[Stop]:
        raise NotImplementedError

    @abstractmethod
    async def find_transfer_stops(
        self,
        from_route_ids: Sequence[str],
        to_route_ids: Sequence[str],
        *,
        limit: int = 20,
    ) -> list[TransferStop]:
        """Stops where a route of the first set meets a route of the second.

        One batched lookup for all route pairs. A pair that shares no station
        may change on foot to a stop of the second route close by, reported
        through `TransferStop.board_stop`.
        """

        raise NotImplementedError

    @abstractmethod
    async def get_actual_travel_time(
        self, route_id: str, from_stop_id: str, to_stop_id: str
    ) -> float | None:
        """Scheduled in-vehicle minutes, or None when the schedule cannot tell."""

        raise NotImplementedError

    @abstractmethod
    async def get_trip_info_for_route(
        self, route_id: str, toward_stop_id: str, from_stop_id: str | None = None
    ) -> TripInfo | None:
        raise NotImplementedError
