from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from haulops.adapters.api.schemas.common import GeoPointSchema


class StartTripRequestSchema(BaseModel):
    vehicle_id: str = Field(..., min_length=1)
    driver_id: str | None = None
    start_position: GeoPointSchema | None = None
    planned_start: datetime | None = None
    planned_end: datetime | None = None
    notes: str | None = None


class EndTripRequestSchema(BaseModel):
    end_position: GeoPointSchema | None = None
    fuel_consumed_liters: float | None = Field(default=None, ge=0.0)
    notes: str | None = None


class CancelTripRequestSchema(BaseModel):
    reason: str | None = None


class TripSchema(BaseModel):
    id: str
    vehicle_id: str
    driver_id: str | None = None
    status: str
    operation_number: str | None = None
    planned_start: datetime | None = None
    planned_end: datetime | None = None
    actual_start: datetime | None = None
    actual_end: datetime | None = None
    total_distance_km: float | None = None
    duration_s: float | None = None
    fuel_consumed_liters: float | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TripStatisticsSchema(BaseModel):
    total_distance_km: float
    duration_s: float
    average_speed_kmh: float
    max_speed_kmh: float
    gps_point_count: int
    partial: bool = False
    activity_count: int = 0
    total_quantity: float = 0.0
