from .in_memory_stop_store import InMemoryStopStore
from .local_gtfs_repository import LocalGtfsRepository

__all__ = [
    "InMemoryStopStore",
    "LocalGtfsRepository",
]
