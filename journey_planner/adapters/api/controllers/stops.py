from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from journey_planner.adapters.api.dependencies import get_nearby_finder
from journey_planner.adapters.api.schemas.journeys import NearbyStopSchema
from journey_planner.adapters.api.serializers import stop_to_schema
from journey_planner.app.services.nearby_stops_service import NearbyStopFinder
from journey_planner.domain.algorithms.geo_utils import walking_time_min

router = APIRouter(tags=["stops"])


@router.get("/stops/nearby", response_model=list[NearbyStopSchema])
async def nearby_stops(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    radius_m: float = Query(500.0, gt=0.0, le=5000.0),
    limit: int = Query(10, ge=1, le=100),
    finder: NearbyStopFinder = Depends(get_nearby_finder),
) -> list[NearbyStopSchema]:
    found = await finder.find_nearby_stops(lat, lon, radius_m=radius_m, limit=limit)
    return [
        NearbyStopSchema(
            stop=stop_to_schema(n.stop),
            distance_m=round(n.distance_m, 1),
            walking_min=walking_time_min(n.distance_m),
        )
        for n in found
    ]
