from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from journey_planner.domain.algorithms.travel_time import TravelTimeEstimator
from journey_planner.domain.models import RegionBounds


def _env_str(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip() or None


@dataclass(frozen=True, slots=True)
class PlannerSettings:
    gtfs_path: str
    region: RegionBounds | None
    mode_profiles_path: str | None
    candidate_radius_m: float
    max_candidate_stops: int
    cache_ttl_s: float
    geocoder_url: str
    geocoder_user_agent: str
    geocoder_timeout_s: float
    geocoder_country_code: str | None

    @staticmethod
    def from_env() -> "PlannerSettings":
        bbox = _env_str("GTFS_REGION_BBOX")
        return PlannerSettings(
            gtfs_path=os.getenv("GTFS_PATH", "data/gtfs"),
            region=RegionBounds.parse(bbox) if bbox else None,
            mode_profiles_path=_env_str("MODE_PROFILES_PATH"),
            candidate_radius_m=float(os.getenv("CANDIDATE_RADIUS_M", "2500")),
            max_candidate_stops=int(os.getenv("MAX_CANDIDATE_STOPS", "5")),
            cache_ttl_s=float(os.getenv("CACHE_TTL_S", "300")),
            geocoder_url=os.getenv(
                "GEOCODER_URL", "https://nominatim.openstreetmap.org"
            ),
            geocoder_user_agent=os.getenv(
                "GEOCODER_USER_AGENT", "transit-journey-planner/0.1"
            ),
            geocoder_timeout_s=float(os.getenv("GEOCODER_TIMEOUT_S", "10")),
            geocoder_country_code=_env_str("GEOCODER_COUNTRY_CODE"),
        )

    def travel_time_estimator(self) -> TravelTimeEstimator:
        """Built-in mode profiles, overridden by MODE_PROFILES_PATH when set."""

        if not self.mode_profiles_path:
            return TravelTimeEstimator()
        raw = json.loads(Path(self.mode_profiles_path).read_text(encoding="utf-8"))
        return TravelTimeEstimator.from_mapping(raw)
