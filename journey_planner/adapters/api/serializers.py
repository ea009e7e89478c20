from __future__ import annotations

from journey_planner.adapters.api.schemas.journeys import (
    AllowedModesSchema,
    JourneySchema,
    LocationSchema,
    PreferencesSchema,
    SegmentSchema,
    StopSchema,
    TransitRouteSchema,
)
from journey_planner.domain.models import (
    AllowedModes,
    GeocodingResult,
    JourneyResult,
    OptimizeFor,
    Route,
    RouteSegment,
    RoutingPreferences,
    Stop,
)


def stop_to_schema(stop: Stop) -> StopSchema:
    return StopSchema(
        id=stop.id,
        name=stop.name,
        lat=stop.lat,
        lon=stop.lon,
        location_type=stop.location_type,
        parent_station=stop.parent_station,
    )


def _route_to_schema(route: Route) -> TransitRouteSchema:
    return TransitRouteSchema(
        id=route.id,
        short_name=route.short_name,
        long_name=route.long_name,
        route_type=route.route_type,
        color=route.color,
        text_color=route.text_color,
    )


def _segment_to_schema(seg: RouteSegment) -> SegmentSchema:
    return SegmentSchema(
        type=seg.type.value,
        origin=stop_to_schema(seg.origin),
        destination=stop_to_schema(seg.destination),
        duration_min=seg.duration_min,
        distance_m=seg.distance_m,
        route=_route_to_schema(seg.route) if seg.route else None,
        headsign=seg.headsign,
        depart_at=seg.depart_at,
        arrive_at=seg.arrive_at,
    )


def journey_to_schema(journey: JourneyResult) -> JourneySchema:
    return JourneySchema(
        segments=[_segment_to_schema(s) for s in journey.segments],
        total_duration_min=journey.total_duration_min,
        total_walk_distance_m=journey.total_walk_distance_m,
        number_of_transfers=journey.number_of_transfers,
        depart_at=journey.depart_at,
        arrive_at=journey.arrive_at,
        tags=list(journey.tags),
    )


def location_from_schema(loc: LocationSchema, default_label: str) -> GeocodingResult:
    return GeocodingResult(lat=loc.lat, lon=loc.lon, display_name=loc.label or default_label)


def preferences_from_schema(prefs: PreferencesSchema) -> RoutingPreferences:
    modes: AllowedModesSchema = prefs.allowed_modes
    return RoutingPreferences(
        allowed_modes=AllowedModes(
            metro=modes.metro,
            train=modes.train,
            tram=modes.tram,
            bus=modes.bus,
            ferry=modes.ferry,
            walking=modes.walking,
        ),
        optimize_for=OptimizeFor(prefs.optimize_for),
        max_transfers=prefs.max_transfers,
        max_walking_distance_m=prefs.max_walking_distance_m,
    )
