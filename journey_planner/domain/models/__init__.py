from .geo import GeoPoint, RegionBounds
from .geocoding import GeocodingResult
from .gtfs import FeedReport, GtfsFeed, Route, StopTime, TransferStop, Trip, TripInfo
from .journey import JourneyResult, RouteSegment, SegmentType
from .preferences import (
    DEFAULT_PREFERENCES,
    AllowedModes,
    OptimizeFor,
    RoutingPreferences,
)
from .stop import NearbyStop, Stop
from .transit_mode import TransitMode, basic_route_type

__all__ = [
    "AllowedModes",
    "DEFAULT_PREFERENCES",
    "FeedReport",
    "GeoPoint",
    "GeocodingResult",
    "GtfsFeed",
    "JourneyResult",
    "NearbyStop",
    "OptimizeFor",
    "RegionBounds",
    "Route",
    "RouteSegment",
    "RoutingPreferences",
    "SegmentType",
    "Stop",
    "StopTime",
    "TransferStop",
    "TransitMode",
    "Trip",
    "TripInfo",
    "basic_route_type",
]
