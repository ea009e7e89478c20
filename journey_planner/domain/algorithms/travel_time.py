from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from journey_planner.domain.models.transit_mode import basic_route_type

from .geo_utils import round_half_up


@dataclass(frozen=True, slots=True)
class ModeProfile:
    """Heuristic timing parameters for one GTFS route_type."""

    min_per_km: float
    avg_wait_min: float
    dwell_per_stop_min: float
    avg_inter_stop_km: float


# Calibrated against one reference city's schedules (metro ~6 km in ~10 min,
# commuter rail ~46 km/h, urban bus ~20 km/h).
DEFAULT_MODE_PROFILES: Mapping[int, ModeProfile] = {
    0: ModeProfile(min_per_km=3.5, avg_wait_min=4, dwell_per_stop_min=0.4, avg_inter_stop_km=0.5),
    1: ModeProfile(min_per_km=1.7, avg_wait_min=3, dwell_per_stop_min=0.5, avg_inter_stop_km=0.9),
    2: ModeProfile(min_per_km=1.3, avg_wait_min=5, dwell_per_stop_min=0.5, avg_inter_stop_km=2.5),
    3: ModeProfile(min_per_km=3.0, avg_wait_min=5, dwell_per_stop_min=0.5, avg_inter_stop_km=0.4),
    4: ModeProfile(min_per_km=3.5, avg_wait_min=8, dwell_per_stop_min=1.0, avg_inter_stop_km=5.0),
}

DEFAULT_PROFILE = ModeProfile(
    min_per_km=3.0, avg_wait_min=5, dwell_per_stop_min=0.5, avg_inter_stop_km=0.5
)


@dataclass(slots=True)
class TravelTimeEstimator:
    """Mode-specific travel/wait time estimation for transit segments.

    Used when no schedule-derived travel time is available. The profile table
    is injectable so a deployment can recalibrate without code changes.
    """

    profiles: Mapping[int, ModeProfile] = field(
        default_factory=lambda: dict(DEFAULT_MODE_PROFILES)
    )
    default_profile: ModeProfile = DEFAULT_PROFILE
    transfer_penalty_min: int = 5
    min_segment_min: int = 3

    def profile_for(self, route_type: int) -> ModeProfile:
        profile = self.profiles.get(route_type)
        if profile is None:
            profile = self.profiles.get(basic_route_type(route_type))
        return profile or self.default_profile

    def estimate_minutes(self, route_type: int, distance_m: float) -> int:
        p = self.profile_for(route_type)
        distance_km = max(0.0, float(distance_m)) / 1000.0

        travel = distance_km * p.min_per_km
        intermediate_stops = 0
        if p.avg_inter_stop_km > 0:
            intermediate_stops = max(
                0, round_half_up(distance_km / p.avg_inter_stop_km) - 1
            )
        dwell = intermediate_stops * p.dwell_per_stop_min

        return max(self.min_segment_min, round_half_up(travel + dwell + p.avg_wait_min))

    def scheduled_minutes(self, route_type: int, travel_min: float) -> int:
        # Schedule data already includes running and dwell time.
        p = self.profile_for(route_type)
        return round_half_up(max(0.0, float(travel_min)) + p.avg_wait_min)

    def segment_minutes(
        self,
        route_type: int,
        distance_m: float,
        scheduled_travel_min: float | None = None,
    ) -> int:
        if scheduled_travel_min is not None:
            return self.scheduled_minutes(route_type, scheduled_travel_min)
        return self.estimate_minutes(route_type, distance_m)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "TravelTimeEstimator":
        """Build an estimator from JSON-like configuration.

        Expected shape::

            {
              "profiles": {"1": {"min_per_km": 1.7, "avg_wait_min": 3,
                                 "dwell_per_stop_min": 0.5, "avg_inter_stop_km": 0.9}},
              "default": {...},
              "transfer_penalty_min": 5,
              "min_segment_min": 3
            }

        Profiles not listed keep their built-in values.
        """

        profiles: dict[int, ModeProfile] = dict(DEFAULT_MODE_PROFILES)
        for key, values in (raw.get("profiles") or {}).items():
            profiles[int(key)] = _profile_from_mapping(values)

        default_raw = raw.get("default")
        default_profile = (
            _profile_from_mapping(default_raw) if default_raw else DEFAULT_PROFILE
        )

        return cls(
            profiles=profiles,
            default_profile=default_profile,
            transfer_penalty_min=int(raw.get("transfer_penalty_min", 5)),
            min_segment_min=int(raw.get("min_segment_min", 3)),
        )


def _profile_from_mapping(values: Mapping[str, Any]) -> ModeProfile:
    try:
        return ModeProfile(
            min_per_km=float(values["min_per_km"]),
            avg_wait_min=float(values["avg_wait_min"]),
            dwell_per_stop_min=float(values["dwell_per_stop_min"]),
            avg_inter_stop_km=float(values["avg_inter_stop_km"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid mode profile: {values!r}") from exc
