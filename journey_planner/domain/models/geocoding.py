from __future__ import annotations

from dataclasses import dataclass

from .geo import GeoPoint


@dataclass(frozen=True, slots=True)
class GeocodingResult:
    lat: float
    lon: float
    display_name: str
    short_address: str | None = None
    kind: str | None = None  # 'house', 'street', 'city', ...
    importance: float = 0.0

    @property
    def label(self) -> str:
        return self.short_address or self.display_name

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)
