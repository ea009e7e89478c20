"""Preference filtering, scoring and tagging of candidate journeys."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, Mapping, Sequence

from journey_planner.domain.models import (
    JourneyResult,
    OptimizeFor,
    RoutingPreferences,
    TransitMode,
)

logger = logging.getLogger(__name__)

ScoringStrategy = Callable[[JourneyResult, RoutingPreferences], float]

TAG_FASTEST = "fastest"
TAG_FEWEST_TRANSFERS = "fewest-transfers"
TAG_LEAST_WALKING = "least-walking"
TAG_ECO_FRIENDLY = "eco-friendly"

ECO_MAX_WALK_M = 500
ECO_MAX_TRANSFERS = 1


def is_route_type_allowed(route_type: int, preferences: RoutingPreferences) -> bool:
    modes = preferences.allowed_modes
    mode = TransitMode.from_route_type(route_type)
    if mode is TransitMode.TRAM:
        return modes.tram
    if mode is TransitMode.METRO:
        return modes.metro
    if mode is TransitMode.RAIL:
        return modes.train
    if mode is TransitMode.BUS:
        return modes.bus
    if mode is TransitMode.FERRY:
        return modes.ferry
    return True


def uses_only_allowed_modes(journey: JourneyResult, preferences: RoutingPreferences) -> bool:
    return all(
        is_route_type_allowed(seg.route.route_type, preferences)
        for seg in journey.transit_segments
        if seg.route is not None
    )


def meets_preferences(journey: JourneyResult, preferences: RoutingPreferences) -> bool:
    """Transfer cap and walking-distance ceiling."""

    if (
        preferences.max_transfers is not None
        and journey.number_of_transfers > preferences.max_transfers
    ):
        return False
    return journey.total_walk_distance_m <= preferences.max_walking_distance_m


@dataclass(frozen=True, slots=True)
class ScoreWeights:
    duration_per_min: float
    per_transfer: float
    walk_per_100m: float


DEFAULT_WEIGHTS: Mapping[OptimizeFor, ScoreWeights] = {
    OptimizeFor.FASTEST: ScoreWeights(duration_per_min=1.0, per_transfer=2.0, walk_per_100m=0.5),
    OptimizeFor.FEWEST_TRANSFERS: ScoreWeights(duration_per_min=0.2, per_transfer=30.0, walk_per_100m=0.5),
    OptimizeFor.LEAST_WALKING: ScoreWeights(duration_per_min=0.2, per_transfer=2.0, walk_per_100m=10.0),
}


def weighted_score(journey: JourneyResult, preferences: RoutingPreferences) -> float:
    """Higher is better. All three criteria count, the optimized one dominates."""

    w = DEFAULT_WEIGHTS[preferences.optimize_for]
    penalty = (
        journey.total_duration_min * w.duration_per_min
        + journey.number_of_transfers * w.per_transfer
        + journey.total_walk_distance_m / 100.0 * w.walk_per_100m
    )
    return 1000.0 - penalty


def single_criterion_score(journey: JourneyResult, preferences: RoutingPreferences) -> float:
    """Looks at the optimized criterion only; direct journeys get a bonus."""

    if preferences.optimize_for is OptimizeFor.FEWEST_TRANSFERS:
        score = 100.0 - journey.number_of_transfers * 10
        if journey.number_of_transfers == 0:
            score += 50
        return score
    if preferences.optimize_for is OptimizeFor.LEAST_WALKING:
        return 2000.0 - journey.total_walk_distance_m
    return 1000.0 - journey.total_duration_min


def journey_tags(
    journey: JourneyResult, candidates: Sequence[JourneyResult]
) -> tuple[str, ...]:
    """Comparative labels relative to the final candidate set."""

    if not candidates:
        return ()

    tags: list[str] = []
    if journey.total_duration_min == min(j.total_duration_min for j in candidates):
        tags.append(TAG_FASTEST)
    if journey.number_of_transfers == min(j.number_of_transfers for j in candidates):
        tags.append(TAG_FEWEST_TRANSFERS)
    if journey.total_walk_distance_m == min(j.total_walk_distance_m for j in candidates):
        tags.append(TAG_LEAST_WALKING)
    if (
        journey.total_walk_distance_m < ECO_MAX_WALK_M
        and journey.number_of_transfers <= ECO_MAX_TRANSFERS
    ):
        tags.append(TAG_ECO_FRIENDLY)
    return tuple(tags)


def _compare(a: tuple[JourneyResult, float], b: tuple[JourneyResult, float]) -> int:
    (ja, sa), (jb, sb) = a, b
    if ja.is_walk_only != jb.is_walk_only:
        walk, transit = (ja, jb) if ja.is_walk_only else (jb, ja)
        # Walking competes on score only when it is not slower than transit.
        if walk.total_duration_min > transit.total_duration_min:
            return 1 if ja.is_walk_only else -1
    if sa == sb:
        return 0
    return -1 if sa > sb else 1


def rank_journeys(
    base: Sequence[JourneyResult],
    preferences: RoutingPreferences,
    max_routes: int = 3,
    scorer: ScoringStrategy = weighted_score,
) -> list[JourneyResult]:
    """Filter base candidates by preferences, then score, order, cut and tag them.

    When filtering removes every candidate the fastest base candidate is
    returned anyway, so the rider always gets an answer.
    """

    if not base:
        return []

    walk_only = [j for j in base if j.is_walk_only]
    transit = [j for j in base if not j.is_walk_only]

    kept = [
        j
        for j in transit
        if meets_preferences(j, preferences) and uses_only_allowed_modes(j, preferences)
    ]
    logger.debug("Preference filter kept %s of %s transit journeys", len(kept), len(transit))

    if preferences.allowed_modes.walking and walk_only:
        kept.append(walk_only[0])

    if not kept:
        fallback = min(base, key=lambda j: j.total_duration_min)
        logger.warning("No journey meets the preferences, returning best available")
        return [fallback.with_tags(journey_tags(fallback, [fallback]))]

    scored = [(j, scorer(j, preferences)) for j in kept]
    scored.sort(key=cmp_to_key(_compare))

    top = [j for j, _ in scored[: max(1, max_routes)]]
    return [j.with_tags(journey_tags(j, top)) for j in top]
