from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OptimizeFor(str, Enum):
    FASTEST = "fastest"
    FEWEST_TRANSFERS = "fewest-transfers"
    LEAST_WALKING = "least-walking"


@dataclass(frozen=True, slots=True)
class AllowedModes:
    metro: bool = True
    train: bool = True
    tram: bool = True
    bus: bool = True
    ferry: bool = True
    walking: bool = True


@dataclass(frozen=True, slots=True)
class RoutingPreferences:
    """Per-search user preferences; never persisted by the planner."""

    allowed_modes: AllowedModes = field(default_factory=AllowedModes)
    optimize_for: OptimizeFor = OptimizeFor.FASTEST
    max_transfers: int | None = None  # None = unlimited
    max_walking_distance_m: float = 1000.0

    def __post_init__(self) -> None:
        if self.max_transfers is not None and self.max_transfers < 0:
            raise ValueError(f"max_transfers must be >= 0, got {self.max_transfers}")
        if self.max_walking_distance_m < 0:
            raise ValueError("max_walking_distance_m must be >= 0")


DEFAULT_PREFERENCES = RoutingPreferences()
