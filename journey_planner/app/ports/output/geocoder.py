from __future__ import annotations

from abc import ABC, abstractmethod

from journey_planner.domain.models import GeocodingResult


class IGeocoder(ABC):
    """Port for resolving free-text addresses to coordinates."""

    @abstractmethod
    async def geocode_address(
        self, text: str, country_code: str | None = None, limit: int = 5
    ) -> list[GeocodingResult]:
        raise NotImplementedError
