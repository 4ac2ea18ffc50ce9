from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from haulops.adapters.api.schemas.trips import TripStatisticsSchema


class GpsSampleRequestSchema(BaseModel):
    # Coordinates are range-checked by the ingestion pipeline so a batch can
    # reject single samples instead of the whole request.
    latitude: float
    longitude: float
    recorded_at: datetime | None = None
    event_type: Literal["TRIP_START", "TRIP_END", "LOCATION_UPDATE"] = "LOCATION_UPDATE"
    trip_id: str | None = None
    vehicle_id: str | None = None
    altitude: float | None = None
    speed_kmh: float | None = None
    heading: float | None = None
    accuracy_meters: float | None = None


class GpsBatchRequestSchema(BaseModel):
    samples: list[GpsSampleRequestSchema] = Field(..., max_length=5000)


class GpsSampleSchema(BaseModel):
    id: str
    trip_id: str | None = None
    vehicle_id: str | None = None
    latitude: float
    longitude: float
    altitude: float | None = None
    speed_kmh: float | None = None
    heading: float | None = None
    accuracy_meters: float | None = None
    recorded_at: datetime
    event_type: str


class BatchResultSchema(BaseModel):
    uploaded: int
    total: int
    failed: int


class GpsHistorySchema(BaseModel):
    trip_id: str
    samples: list[GpsSampleSchema]
    statistics: TripStatisticsSchema | None = None


class SpeedViolationSchema(BaseModel):
    sample: GpsSampleSchema
    threshold_kmh: float
    excess_kmh: float
    severity: Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
