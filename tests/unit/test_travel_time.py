from __future__ import annotations

import pytest

from journey_planner.domain.algorithms.travel_time import (
    DEFAULT_MODE_PROFILES,
    ModeProfile,
    TravelTimeEstimator,
)


@pytest.mark.unit
def test_metro_estimate_is_realistic() -> None:
    minutes = TravelTimeEstimator().estimate_minutes(1, 6000.0)
    assert 5 <= minutes <= 20


@pytest.mark.unit
def test_commuter_rail_estimate_is_realistic() -> None:
    minutes = TravelTimeEstimator().estimate_minutes(2, 40000.0)
    assert 30 <= minutes <= 90


@pytest.mark.unit
def test_bus_is_slower_than_metro_over_same_distance() -> None:
    est = TravelTimeEstimator()
    assert est.estimate_minutes(3, 5000.0) > est.estimate_minutes(1, 5000.0)


@pytest.mark.unit
def test_estimate_has_a_floor() -> None:
    est = TravelTimeEstimator(
        profiles={},
        default_profile=ModeProfile(
            min_per_km=1.0, avg_wait_min=0, dwell_per_stop_min=0, avg_inter_stop_km=0
        ),
    )
    assert est.estimate_minutes(1, 100.0) == 3


@pytest.mark.unit
def test_extended_route_type_uses_basic_profile() -> None:
    est = TravelTimeEstimator()
    assert est.profile_for(715) == DEFAULT_MODE_PROFILES[3]
    assert est.profile_for(401) == DEFAULT_MODE_PROFILES[1]
    assert est.profile_for(7) == est.default_profile


@pytest.mark.unit
def test_scheduled_time_adds_average_wait() -> None:
    est = TravelTimeEstimator()

    # Metro waits 3 min on average.
    assert est.scheduled_minutes(1, 6.0) == 9
    assert est.segment_minutes(1, 6000.0, scheduled_travel_min=6.0) == 9
    assert est.segment_minutes(1, 6000.0) == est.estimate_minutes(1, 6000.0)


@pytest.mark.unit
def test_from_mapping_overrides_selected_profiles() -> None:
    est = TravelTimeEstimator.from_mapping(
        {
            "profiles": {
                "1": {
                    "min_per_km": 2.0,
                    "avg_wait_min": 4,
                    "dwell_per_stop_min": 0.5,
                    "avg_inter_stop_km": 1.0,
                }
            },
            "transfer_penalty_min": 4,
        }
    )

    assert est.profile_for(1).min_per_km == 2.0
    assert est.profile_for(3) == DEFAULT_MODE_PROFILES[3]
    assert est.transfer_penalty_min == 4
    assert est.min_segment_min == 3


@pytest.mark.unit
def test_from_mapping_rejects_incomplete_profile() -> None:
    with pytest.raises(ValueError):
        TravelTimeEstimator.from_mapping({"profiles": {"1": {"min_per_km": 2.0}}})
