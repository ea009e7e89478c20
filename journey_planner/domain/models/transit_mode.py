from __future__ import annotations

from enum import Enum


class TransitMode(str, Enum):
    TRAM = "tram"
    METRO = "metro"
    RAIL = "rail"
    BUS = "bus"
    FERRY = "ferry"
    OTHER = "other"

    @staticmethod
    def from_route_type(route_type: int) -> "TransitMode":
        return _BASIC_MODES.get(basic_route_type(route_type), TransitMode.OTHER)


_BASIC_MODES: dict[int, TransitMode] = {
    0: TransitMode.TRAM,
    1: TransitMode.METRO,
    2: TransitMode.RAIL,
    3: TransitMode.BUS,
    4: TransitMode.FERRY,
    11: TransitMode.BUS,  # trolleybus
    12: TransitMode.METRO,  # monorail
}

# Extended (hierarchical) GTFS route types -> basic route_type.
_EXTENDED_RANGES: tuple[tuple[int, int, int], ...] = (
    (100, 199, 2),  # railway services
    (200, 299, 3),  # coach services
    (400, 405, 1),  # urban railway / metro / underground
    (700, 799, 3),  # bus services
    (800, 899, 3),  # trolleybus
    (900, 999, 0),  # tram services
    (1000, 1099, 4),  # water transport
    (1200, 1299, 4),  # ferry
)


def basic_route_type(route_type: int) -> int:
    """Collapse an extended GTFS route_type onto the basic 0-12 range."""

    if 0 <= route_type <= 12:
        return route_type
    for low, high, basic in _EXTENDED_RANGES:
        if low <= route_type <= high:
            return basic
    return route_type
