class RoutingError(Exception):
    """Base exception for journey search failures."""


class StopNotFound(RoutingError):
    """Raised when a referenced stop id does not exist in the store."""

    def __init__(self, stop_id: str) -> None:
        super().__init__(f"Stop not found: {stop_id}")
        self.stop_id = stop_id


class NoStopsNearLocation(RoutingError):
    """Raised when no boarding stop exists within the search radius of a location."""

    def __init__(self, label: str, radius_m: float) -> None:
        super().__init__(f"No stops found near {label} (search radius {int(radius_m)} m)")
        self.label = label
        self.radius_m = radius_m


class NoRouteFound(RoutingError):
    """Raised when a search completed without any usable journey."""


class AddressNotFound(RoutingError):
    """Raised when the geocoder cannot resolve an address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Could not find address: {address}")
        self.address = address
