"""Turn heterogeneous raw GTFS rows into the canonical feed model.

Raw rows are mappings as produced by `csv.DictReader`: header names vary
between feeds, and surplus cells of a broken row sit under the `None` key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from journey_planner.domain.exceptions import InvalidFeedError
from journey_planner.domain.models import (
    FeedReport,
    GeoPoint,
    GtfsFeed,
    RegionBounds,
    Route,
    Stop,
    StopTime,
    Trip,
)

from .coordinate_repair import RawCoordinates, is_valid_wgs84, repair_coordinates
from .route_naming import (
    DEFAULT_TEXT_COLOR,
    RouteNameInput,
    default_route_color,
    normalize_color,
    synthesize_short_names,
)

logger = logging.getLogger(__name__)

RawRow = Mapping[Any, Any]

# Ordered aliases per canonical field; the first non-empty value wins.
STOP_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("stop_id", "stopid", "id", "durak_id"),
    "name": ("stop_name", "stopname", "name", "durak_adi"),
    "lat": ("stop_lat", "stoplat", "lat", "latitude", "enlem"),
    "lon": ("stop_lon", "stoplon", "lon", "lng", "longitude", "boylam"),
    "location_type": ("location_type", "locationtype"),
    "parent_station": ("parent_station", "parentstation"),
}

ROUTE_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("route_id", "routeid", "id"),
    "short_name": ("route_short_name", "routeshortname", "short_name"),
    "long_name": ("route_long_name", "routelongname", "long_name"),
    "type": ("route_type", "routetype", "type"),
    "color": ("route_color", "routecolor", "color"),
    "text_color": ("route_text_color", "routetextcolor", "text_color"),
}

TRIP_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("trip_id", "tripid", "id"),
    "route_id": ("route_id", "routeid"),
    "service_id": ("service_id", "serviceid"),
    "headsign": ("trip_headsign", "tripheadsign", "headsign"),
    "direction_id": ("direction_id", "directionid"),
    "shape_id": ("shape_id", "shapeid"),
}

STOP_TIME_ALIASES: dict[str, tuple[str, ...]] = {
    "trip_id": ("trip_id", "tripid"),
    "stop_id": ("stop_id", "stopid"),
    "stop_sequence": ("stop_sequence", "stopsequence", "sequence"),
    "arrival_time": ("arrival_time", "arrivaltime", "arrival"),
    "departure_time": ("departure_time", "departuretime", "departure"),
}

SHAPE_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("shape_id", "shapeid"),
    "lat": ("shape_pt_lat", "shapeptlat", "lat"),
    "lon": ("shape_pt_lon", "shapeptlon", "lon"),
    "sequence": ("shape_pt_sequence", "shapeptsequence", "sequence"),
}

DEFAULT_ROUTE_TYPE = 3


@dataclass(slots=True)
class RawFeed:
    stops: Sequence[RawRow]
    routes: Sequence[RawRow]
    trips: Sequence[RawRow]
    stop_times: Sequence[RawRow]
    shapes: Sequence[RawRow] = field(default_factory=list)


def normalize_header(name: str) -> str:
    return str(name).replace("\ufeff", "").strip().lower()


@dataclass(slots=True)
class _Row:
    """A raw row with normalized header names, in original column order."""

    values: dict[str, str]
    surplus: tuple[str, ...]

    @staticmethod
    def of(raw: RawRow) -> "_Row":
        values: dict[str, str] = {}
        surplus: tuple[str, ...] = ()
        for key, value in raw.items():
            if key is None:
                surplus = tuple("" if v is None else str(v) for v in (value or ()))
                continue
            values.setdefault(normalize_header(key), "" if value is None else str(value))
        return _Row(values=values, surplus=surplus)

    def key_for(self, aliases: Iterable[str]) -> str | None:
        for alias in aliases:
            if (self.values.get(alias) or "").strip():
                return alias
        return None

    def get(self, aliases: Iterable[str]) -> str:
        key = self.key_for(aliases)
        return self.values[key].strip() if key is not None else ""

    def trailing_after(self, key: str) -> tuple[str, ...]:
        keys = list(self.values)
        idx = keys.index(key)
        return tuple(self.values[k] for k in keys[idx + 1 :]) + self.surplus


def parse_gtfs_time_to_seconds(raw: str) -> int:
    # GTFS time can be HH:MM:SS with HH possibly > 24.
    parts = raw.strip().split(":")
    if len(parts) != 3:
        raise ValueError(f"Invalid GTFS time: {raw!r}")
    hh, mm, ss = (int(p) for p in parts)
    if hh < 0 or not (0 <= mm < 60) or not (0 <= ss < 60):
        raise ValueError(f"Invalid GTFS time: {raw!r}")
    return hh * 3600 + mm * 60 + ss


def _parse_int(raw: str, default: int) -> int:
    try:
        return int(float(raw)) if raw else default
    except ValueError:
        return default


def _normalize_stops(
    rows: Sequence[RawRow], region: RegionBounds | None, report: FeedReport
) -> dict[str, Stop]:
    stops: dict[str, Stop] = {}
    for raw in rows:
        report.rows_read["stops"] += 1
        row = _Row.of(raw)
        stop_id = row.get(STOP_ALIASES["id"])
        if not stop_id or stop_id in stops:
            report.drop("stops")
            continue

        lat_key = row.key_for(STOP_ALIASES["lat"])
        lon_key = row.key_for(STOP_ALIASES["lon"])
        if lat_key is None or lon_key is None:
            report.drop("stops")
            continue

        keys = list(row.values)
        last_key = max(lat_key, lon_key, key=keys.index)
        coords = repair_coordinates(
            RawCoordinates(
                lat=row.values[lat_key],
                lon=row.values[lon_key],
                trailing=row.trailing_after(last_key),
            ),
            region=region,
        )
        if not is_valid_wgs84(coords.lat, coords.lon):
            report.drop("stops")
            continue
        if coords.repaired:
            report.coordinate_repairs[coords.strategy] += 1

        parent = row.get(STOP_ALIASES["parent_station"]) or None
        stops[stop_id] = Stop(
            id=stop_id,
            name=row.get(STOP_ALIASES["name"]) or stop_id,
            location=GeoPoint(lat=coords.lat, lon=coords.lon),
            location_type=_parse_int(row.get(STOP_ALIASES["location_type"]), 0),
            parent_station=parent,
        )
        report.rows_kept["stops"] += 1
    return stops


def _normalize_routes(rows: Sequence[RawRow], report: FeedReport) -> dict[str, Route]:
    parsed: list[tuple[RouteNameInput, str, str]] = []
    seen: set[str] = set()
    for raw in rows:
        report.rows_read["routes"] += 1
        row = _Row.of(raw)
        route_id = row.get(ROUTE_ALIASES["id"])
        if not route_id or route_id in seen:
            report.drop("routes")
            continue
        seen.add(route_id)

        type_raw = row.get(ROUTE_ALIASES["type"])
        route_type = _parse_int(type_raw, DEFAULT_ROUTE_TYPE)
        if not type_raw:
            report.warn(f"route {route_id}: missing route_type, assuming bus")

        parsed.append(
            (
                RouteNameInput(
                    route_id=route_id,
                    route_type=route_type,
                    short_name=row.get(ROUTE_ALIASES["short_name"]),
                    long_name=row.get(ROUTE_ALIASES["long_name"]),
                ),
                row.get(ROUTE_ALIASES["color"]),
                row.get(ROUTE_ALIASES["text_color"]),
            )
        )

    synthesized = synthesize_short_names(p for p, _, _ in parsed)
    report.synthesized_short_names += len(synthesized)

    routes: dict[str, Route] = {}
    for name_input, color_raw, text_raw in parsed:
        color = normalize_color(color_raw)
        if color is None:
            color = default_route_color(name_input.route_type)
            report.defaulted_colors += 1
        text_color = normalize_color(text_raw) or DEFAULT_TEXT_COLOR

        short = name_input.short_name or synthesized[name_input.route_id]
        routes[name_input.route_id] = Route(
            id=name_input.route_id,
            short_name=short,
            long_name=name_input.long_name or short,
            route_type=name_input.route_type,
            color=color,
            text_color=text_color,
        )
        report.rows_kept["routes"] += 1
    return routes


def _normalize_trips(
    rows: Sequence[RawRow], routes: Mapping[str, Route], report: FeedReport
) -> dict[str, Trip]:
    trips: dict[str, Trip] = {}
    for raw in rows:
        report.rows_read["trips"] += 1
        row = _Row.of(raw)
        trip_id = row.get(TRIP_ALIASES["id"])
        route_id = row.get(TRIP_ALIASES["route_id"])
        if not trip_id or trip_id in trips or route_id not in routes:
            report.drop("trips")
            continue
        trips[trip_id] = Trip(
            id=trip_id,
            route_id=route_id,
            service_id=row.get(TRIP_ALIASES["service_id"]),
            headsign=row.get(TRIP_ALIASES["headsign"]) or None,
            direction_id=_parse_int(row.get(TRIP_ALIASES["direction_id"]), 0),
            shape_id=row.get(TRIP_ALIASES["shape_id"]) or None,
        )
        report.rows_kept["trips"] += 1
    return trips


def _normalize_stop_times(
    rows: Sequence[RawRow],
    stops: Mapping[str, Stop],
    trips: Mapping[str, Trip],
    report: FeedReport,
) -> dict[str, tuple[StopTime, ...]]:
    by_trip: dict[str, dict[int, StopTime]] = {}
    for raw in rows:
        report.rows_read["stop_times"] += 1
        row = _Row.of(raw)
        trip_id = row.get(STOP_TIME_ALIASES["trip_id"])
        stop_id = row.get(STOP_TIME_ALIASES["stop_id"])
        if trip_id not in trips or stop_id not in stops:
            report.drop("stop_times")
            continue

        try:
            seq = int(row.get(STOP_TIME_ALIASES["stop_sequence"]))
            arrival = row.get(STOP_TIME_ALIASES["arrival_time"]) or None
            departure = row.get(STOP_TIME_ALIASES["departure_time"]) or None
            for value in (arrival, departure):
                if value is not None:
                    parse_gtfs_time_to_seconds(value)
        except ValueError:
            report.drop("stop_times")
            continue

        calls = by_trip.setdefault(trip_id, {})
        if seq in calls:
            report.drop("stop_times")
            continue
        calls[seq] = StopTime(
            trip_id=trip_id,
            stop_id=stop_id,
            stop_sequence=seq,
            arrival_time=arrival or departure,
            departure_time=departure or arrival,
        )
        report.rows_kept["stop_times"] += 1

    return {
        trip_id: tuple(calls[s] for s in sorted(calls))
        for trip_id, calls in by_trip.items()
    }


def _normalize_shapes(
    rows: Sequence[RawRow], report: FeedReport
) -> dict[str, tuple[GeoPoint, ...]]:
    tmp: dict[str, list[tuple[int, GeoPoint]]] = {}
    for raw in rows:
        report.rows_read["shapes"] += 1
        row = _Row.of(raw)
        shape_id = row.get(SHAPE_ALIASES["id"])
        if not shape_id:
            report.drop("shapes")
            continue
        try:
            seq = int(row.get(SHAPE_ALIASES["sequence"]) or 0)
            point = GeoPoint(
                lat=float(row.get(SHAPE_ALIASES["lat"])),
                lon=float(row.get(SHAPE_ALIASES["lon"])),
            )
        except ValueError:
            report.drop("shapes")
            continue
        tmp.setdefault(shape_id, []).append((seq, point))
        report.rows_kept["shapes"] += 1

    shapes: dict[str, tuple[GeoPoint, ...]] = {}
    for shape_id, pts in tmp.items():
        pts.sort(key=lambda x: x[0])
        shapes[shape_id] = tuple(p for _, p in pts)
    return shapes


REQUIRED_CATEGORIES = ("stops", "routes", "trips", "stop_times")


def normalize_feed(
    raw: RawFeed, region: RegionBounds | None = None
) -> tuple[GtfsFeed, FeedReport]:
    """Normalize and validate a raw feed.

    Invalid rows are dropped and counted, never raised. Raises
    `InvalidFeedError` only when a required category ends up empty.
    """

    report = FeedReport()
    stops = _normalize_stops(raw.stops, region, report)
    routes = _normalize_routes(raw.routes, report)
    trips = _normalize_trips(raw.trips, routes, report)
    stop_times = _normalize_stop_times(raw.stop_times, stops, trips, report)
    shapes = _normalize_shapes(raw.shapes, report)

    for category in (*REQUIRED_CATEGORIES, "shapes"):
        dropped = report.rows_dropped[category]
        if dropped:
            message = (
                f"{category}: dropped {dropped} of {report.rows_read[category]} rows"
            )
            report.warn(message)
            logger.warning("GTFS %s", message)
    if report.coordinate_repairs:
        logger.info("GTFS coordinate repairs: %s", dict(report.coordinate_repairs))

    empty = [c for c in REQUIRED_CATEGORIES if not report.rows_kept[c]]
    if empty:
        raise InvalidFeedError(empty)

    logger.info(
        "GTFS feed normalized: %s stops, %s routes, %s trips, %s stop_times",
        len(stops),
        len(routes),
        len(trips),
        report.rows_kept["stop_times"],
    )
    feed = GtfsFeed(
        stops_by_id=stops,
        routes_by_id=routes,
        trips_by_id=trips,
        stop_times_by_trip=stop_times,
        shapes_by_id=shapes,
    )
    return feed, report
