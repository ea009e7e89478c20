from .cache import ICache
from .geocoder import IGeocoder
from .gtfs_repository import IGtfsRepository
from .stop_store import IStopStore

__all__ = [
    "ICache",
    "IGeocoder",
    "IGtfsRepository",
    "IStopStore",
]
