from __future__ import annotations

from pydantic import BaseModel, Field

from haulops.adapters.api.schemas.common import GeoPointSchema


class NearbyRequestSchema(BaseModel):
    position: GeoPointSchema
    radius_meters: float = Field(default=500.0, ge=0.0)
    phase: str | None = None
    limit: int | None = Field(default=None, ge=1, le=100)


class NearbyLocationSchema(BaseModel):
    id: str
    name: str
    location_type: str
    latitude: float
    longitude: float
    distance_m: float
