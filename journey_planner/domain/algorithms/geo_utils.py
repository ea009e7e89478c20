from __future__ import annotations

import math

from journey_planner.domain.models.geo import GeoPoint

EARTH_RADIUS_M = 6371000.0

# 5 km/h
WALK_SPEED_M_PER_MIN = 83.33

METERS_PER_DEGREE_LAT = 111000.0


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in meters."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)

    s = (
        math.sin(dphi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, s)))


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""

    return distance_m(a.lat, a.lon, b.lat, b.lon)


def walking_minutes(distance_meters: float) -> float:
    # Unrounded; callers decide how to round.
    return float(distance_meters) / WALK_SPEED_M_PER_MIN


def walking_time_min(distance_meters: float) -> int:
    """Walking time in whole minutes, rounded up."""

    return int(math.ceil(walking_minutes(distance_meters) - 1e-9))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's round() is banker's rounding, which makes 2.5 -> 2.
    """

    return int(math.floor(float(value) + 0.5))


def bounding_box(
    lat: float, lon: float, radius_m: float
) -> tuple[float, float, float, float]:
    """Approximate (min_lat, min_lon, max_lat, max_lon) around a point."""

    lat_delta = radius_m / METERS_PER_DEGREE_LAT
    cos_lat = max(1e-6, abs(math.cos(math.radians(lat))))
    lon_delta = radius_m / (METERS_PER_DEGREE_LAT * cos_lat)
    return (lat - lat_delta, lon - lon_delta, lat + lat_delta, lon + lon_delta)
