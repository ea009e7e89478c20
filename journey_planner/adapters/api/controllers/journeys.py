from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from journey_planner.adapters.api.dependencies import (
    get_planner_service,
    get_search_service,
)
from journey_planner.adapters.api.schemas.journeys import (
    AddressJourneyRequestSchema,
    JourneyRequestSchema,
    JourneySchema,
)
from journey_planner.adapters.api.serializers import (
    journey_to_schema,
    location_from_schema,
    preferences_from_schema,
)
from journey_planner.app.services.journey_planner_service import (
    CURRENT_LOCATION_LABEL,
    JourneyPlannerService,
)
from journey_planner.app.services.journey_search_service import JourneySearchService
from journey_planner.domain.models import GeocodingResult

router = APIRouter(tags=["journeys"])


@router.get("/journeys/stops", response_model=list[JourneySchema])
async def journeys_between_stops(
    from_stop_id: str = Query(..., min_length=1),
    to_stop_id: str = Query(..., min_length=1),
    depart_at: datetime | None = None,
    service: JourneySearchService = Depends(get_search_service),
) -> list[JourneySchema]:
    journeys = await service.find_route(from_stop_id, to_stop_id, depart_at or datetime.now())
    return [journey_to_schema(j) for j in journeys]


@router.post("/journeys", response_model=list[JourneySchema])
async def journeys_between_locations(
    req: JourneyRequestSchema,
    service: JourneyPlannerService = Depends(get_planner_service),
) -> list[JourneySchema]:
    origin = location_from_schema(req.origin, "Origin")
    destination = location_from_schema(req.destination, "Destination")
    depart_at = req.depart_at or datetime.now()

    if req.preferences is None:
        journeys = await service.find_route_from_locations(origin, destination, depart_at)
    else:
        journeys = await service.find_multiple_routes(
            origin,
            destination,
            depart_at,
            preferences_from_schema(req.preferences),
            req.max_routes,
        )
    return [journey_to_schema(j) for j in journeys]


@router.post("/journeys/addresses", response_model=list[JourneySchema])
async def journeys_between_addresses(
    req: AddressJourneyRequestSchema,
    service: JourneyPlannerService = Depends(get_planner_service),
) -> list[JourneySchema]:
    depart_at = req.depart_at or datetime.now()

    if req.from_location is not None:
        if req.preferences is None:
            journeys = await service.find_route_from_coordinates(
                req.from_location.lat,
                req.from_location.lon,
                req.to_address,
                depart_at,
                req.country_code,
            )
        else:
            origin = GeocodingResult(
                lat=req.from_location.lat,
                lon=req.from_location.lon,
                display_name=CURRENT_LOCATION_LABEL,
            )
            destination = await service.geocode(req.to_address, req.country_code)
            journeys = await service.find_multiple_routes(
                origin,
                destination,
                depart_at,
                preferences_from_schema(req.preferences),
                req.max_routes,
            )
    elif req.preferences is None:
        journeys = await service.find_route_from_addresses(
            req.from_address or "", req.to_address, depart_at, req.country_code
        )
    else:
        journeys = await service.find_multiple_routes_from_addresses(
            req.from_address or "",
            req.to_address,
            depart_at,
            preferences_from_schema(req.preferences),
            req.country_code,
            req.max_routes,
        )
    return [journey_to_schema(j) for j in journeys]
