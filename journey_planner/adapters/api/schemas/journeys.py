from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class LocationSchema(GeoPointSchema):
    label: str | None = None


class StopSchema(BaseModel):
    id: str
    name: str
    lat: float
    lon: float
    location_type: int = 0
    parent_station: str | None = None


class NearbyStopSchema(BaseModel):
    stop: StopSchema
    distance_m: float
    walking_min: int


class TransitRouteSchema(BaseModel):
    id: str
    short_name: str
    long_name: str
    route_type: int
    color: str
    text_color: str


class SegmentSchema(BaseModel):
    type: Literal["walk", "transit"]
    origin: StopSchema
    destination: StopSchema
    duration_min: int
    distance_m: int | None = None
    route: TransitRouteSchema | None = None
    headsign: str | None = None
    depart_at: datetime | None = None
    arrive_at: datetime | None = None


class JourneySchema(BaseModel):
    segments: list[SegmentSchema] = []
    total_duration_min: int
    total_walk_distance_m: int
    number_of_transfers: int
    depart_at: datetime
    arrive_at: datetime
    tags: list[str] = []


class AllowedModesSchema(BaseModel):
    metro: bool = True
    train: bool = True
    tram: bool = True
    bus: bool = True
    ferry: bool = True
    walking: bool = True


class PreferencesSchema(BaseModel):
    allowed_modes: AllowedModesSchema = Field(default_factory=AllowedModesSchema)
    optimize_for: Literal["fastest", "fewest-transfers", "least-walking"] = "fastest"
    max_transfers: int | None = Field(default=None, ge=0)
    max_walking_distance_m: float = Field(default=1000.0, ge=0.0)


class JourneyRequestSchema(BaseModel):
    origin: LocationSchema
    destination: LocationSchema
    depart_at: datetime | None = None
    # Without preferences the raw location search is returned.
    preferences: PreferencesSchema | None = None
    max_routes: int = Field(default=3, ge=1, le=10)


class AddressJourneyRequestSchema(BaseModel):
    from_address: str | None = None
    # Known position of the rider ("current location") instead of from_address.
    from_location: GeoPointSchema | None = None
    to_address: str = Field(..., min_length=1)
    depart_at: datetime | None = None
    country_code: str | None = Field(default=None, min_length=2, max_length=2)
    preferences: PreferencesSchema | None = None
    max_routes: int = Field(default=3, ge=1, le=10)

    @model_validator(mode="after")
    def _one_origin(self) -> "AddressJourneyRequestSchema":
        if (self.from_address is None) == (self.from_location is None):
            raise ValueError("Provide exactly one of from_address or from_location")
        return self


class ErrorSchema(BaseModel):
    detail: str
    code: str | None = None
