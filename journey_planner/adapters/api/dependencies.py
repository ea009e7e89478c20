from __future__ import annotations

import logging
from functools import lru_cache

from journey_planner.adapters.cache.in_memory_cache import InMemoryTtlCache
from journey_planner.adapters.geocoding.cached_geocoder import CachedGeocoder
from journey_planner.adapters.geocoding.nominatim_geocoder import NominatimGeocoder
from journey_planner.adapters.persistence import InMemoryStopStore, LocalGtfsRepository
from journey_planner.adapters.settings import PlannerSettings
from journey_planner.app.ports.output import ICache, IGeocoder, IStopStore
from journey_planner.app.services.journey_planner_service import JourneyPlannerService
from journey_planner.app.services.journey_search_service import JourneySearchService
from journey_planner.app.services.nearby_stops_service import NearbyStopFinder
from journey_planner.domain.algorithms.travel_time import TravelTimeEstimator

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> PlannerSettings:
    return PlannerSettings.from_env()


@lru_cache(maxsize=1)
def get_cache() -> ICache:
    return InMemoryTtlCache()


@lru_cache(maxsize=1)
def get_stop_store() -> IStopStore:
    # Loading and indexing the feed is the expensive part; do it once per process.
    settings = get_settings()
    feed, report = LocalGtfsRepository(
        base_path=settings.gtfs_path, region=settings.region
    ).load_feed()
    if report.warnings:
        logger.warning("GTFS feed loaded with %s warning(s)", len(report.warnings))
    return InMemoryStopStore.from_feed(feed)


@lru_cache(maxsize=1)
def get_geocoder() -> IGeocoder:
    settings = get_settings()
    upstream = NominatimGeocoder(
        base_url=settings.geocoder_url,
        user_agent=settings.geocoder_user_agent,
        timeout_s=settings.geocoder_timeout_s,
        viewbox=settings.region,
    )
    return CachedGeocoder(upstream=upstream, cache=get_cache())


def get_nearby_finder() -> NearbyStopFinder:
    settings = get_settings()
    return NearbyStopFinder(
        stop_store=get_stop_store(), cache=get_cache(), cache_ttl_s=settings.cache_ttl_s
    )


@lru_cache(maxsize=1)
def get_travel_time_estimator() -> TravelTimeEstimator:
    # Reads MODE_PROFILES_PATH, so build it once.
    return get_settings().travel_time_estimator()


def get_search_service() -> JourneySearchService:
    return JourneySearchService(
        stop_store=get_stop_store(),
        estimator=get_travel_time_estimator(),
    )


def get_planner_service() -> JourneyPlannerService:
    settings = get_settings()
    service = JourneyPlannerService(
        search=get_search_service(),
        nearby=get_nearby_finder(),
        geocoder=get_geocoder(),
        default_country_code=settings.geocoder_country_code,
    )

    # Allow tuning via env without changing code.
    service.candidate_radius_m = settings.candidate_radius_m
    service.max_candidate_stops = settings.max_candidate_stops

    return service
