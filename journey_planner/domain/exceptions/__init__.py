from .gtfs import GtfsError, InvalidFeedError
from .routing import (
    AddressNotFound,
    NoRouteFound,
    NoStopsNearLocation,
    RoutingError,
    StopNotFound,
)

__all__ = [
    "AddressNotFound",
    "GtfsError",
    "InvalidFeedError",
    "NoRouteFound",
    "NoStopsNearLocation",
    "RoutingError",
    "StopNotFound",
]
