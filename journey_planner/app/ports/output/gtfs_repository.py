from __future__ import annotations

from abc import ABC, abstractmethod

from journey_planner.domain.models import FeedReport, GtfsFeed


class IGtfsRepository(ABC):
    """Port for loading a normalized GTFS feed."""

    @abstractmethod
    def load_feed(self) -> tuple[GtfsFeed, FeedReport]:
        raise NotImplementedError
