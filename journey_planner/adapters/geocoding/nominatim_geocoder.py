from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from journey_planner.app.ports.output import IGeocoder
from journey_planner.domain.models import GeocodingResult, RegionBounds

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3


@dataclass(slots=True)
class NominatimGeocoder(IGeocoder):
    """Forward geocoding against a Nominatim (OpenStreetMap) instance.

    Notes:
      - Requests are spaced by `min_interval_s` (public instances allow at
        most one request per second), serialized per process.
      - Nominatim's usage policy requires an identifying User-Agent.
      - When `viewbox` is set, results are bounded to it.
    """

    base_url: str = "https://nominatim.openstreetmap.org"
    user_agent: str = "transit-journey-planner/0.1"
    timeout_s: float = 10.0
    min_interval_s: float = 1.5
    viewbox: RegionBounds | None = None
    accept_language: str = "en"
    transport: httpx.AsyncBaseTransport | None = None

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _last_request_monotonic: float | None = field(default=None, init=False, repr=False)

    def _params(self, text: str, country_code: str | None, limit: int) -> dict[str, str]:
        params = {
            "q": text,
            "format": "json",
            "limit": str(limit),
            "addressdetails": "1",
        }
        if self.viewbox is not None:
            vb = self.viewbox
            # left,top,right,bottom
            params["viewbox"] = f"{vb.min_lon},{vb.max_lat},{vb.max_lon},{vb.min_lat}"
            params["bounded"] = "1"
        if country_code:
            params["countrycodes"] = country_code.lower()
        return params

    async def _throttle(self) -> None:
        if self._last_request_monotonic is not None:
            wait = self.min_interval_s - (time.monotonic() - self._last_request_monotonic)
            if wait > 0:
                logger.debug("Throttling geocoder request for %.2fs", wait)
                await asyncio.sleep(wait)
        self._last_request_monotonic = time.monotonic()

    async def geocode_address(
        self, text: str, country_code: str | None = None, limit: int = 5
    ) -> list[GeocodingResult]:
        query = (text or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        headers = {"User-Agent": self.user_agent, "Accept-Language": self.accept_language}
        async with self._lock:
            await self._throttle()
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout_s, transport=self.transport
            ) as client:
                resp = await client.get(
                    "/search", params=self._params(query, country_code, limit), headers=headers
                )
                resp.raise_for_status()
                data = resp.json()

        results = [_parse_item(item) for item in data or []]
        logger.debug("Geocoded %r to %s result(s)", query, len(results))
        return results


def format_short_address(item: dict[str, Any]) -> str | None:
    """'street, city' from Nominatim address details."""

    addr = item.get("address") or {}
    parts: list[str] = []

    if addr.get("house_number") and addr.get("road"):
        parts.append(f"{addr['house_number']} {addr['road']}")
    else:
        for key in ("road", "pedestrian", "amenity"):
            if addr.get(key):
                parts.append(addr[key])
                break

    for key in ("city", "town", "village", "municipality"):
        if addr.get(key):
            parts.append(addr[key])
            break

    return ", ".join(parts) if parts else None


def _parse_item(item: dict[str, Any]) -> GeocodingResult:
    return GeocodingResult(
        lat=float(item["lat"]),
        lon=float(item["lon"]),
        display_name=str(item.get("display_name") or ""),
        short_address=format_short_address(item),
        kind=item.get("type"),
        importance=float(item.get("importance") or 0.0),
    )
