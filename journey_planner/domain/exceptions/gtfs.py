class GtfsError(Exception):
    """Base exception for GTFS ingestion failures."""


class InvalidFeedError(GtfsError):
    """Raised when a required GTFS category has no usable rows after validation."""

    def __init__(self, empty_categories: list[str]) -> None:
        super().__init__(
            "GTFS feed is invalid, no usable rows for: " + ", ".join(empty_categories)
        )
        self.empty_categories = empty_categories
