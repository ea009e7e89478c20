from __future__ import annotations

from dataclasses import dataclass

from journey_planner.app.ports.output import ICache, IGeocoder
from journey_planner.domain.models import GeocodingResult


@dataclass(slots=True)
class CachedGeocoder(IGeocoder):
    """Decorator that memoizes an upstream geocoder through a cache.

    Empty results are not cached so a transient upstream miss is retried.
    """

    upstream: IGeocoder
    cache: ICache
    ttl_s: float = 3600.0
    key_prefix: str = "geocode"

    def _key(self, text: str, country_code: str | None, limit: int) -> str:
        normalized = " ".join(text.lower().split())
        return f"{self.key_prefix}:{country_code or '-'}:{limit}:{normalized}"

    async def geocode_address(
        self, text: str, country_code: str | None = None, limit: int = 5
    ) -> list[GeocodingResult]:
        key = self._key(text, country_code, limit)
        cached = await self.cache.get(key, self.ttl_s)
        if cached is not None:
            return list(cached)

        results = await self.upstream.geocode_address(text, country_code, limit)
        if results:
            await self.cache.set(key, tuple(results))
        return results
