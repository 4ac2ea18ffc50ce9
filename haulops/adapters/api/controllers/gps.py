from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from haulops.adapters.api.controllers.trips import statistics_to_schema
from haulops.adapters.api.dependencies import get_gps_pipeline, get_statistics_engine
from haulops.adapters.api.schemas.common import Envelope
from haulops.adapters.api.schemas.gps import (
    BatchResultSchema,
    GpsBatchRequestSchema,
    GpsHistorySchema,
    GpsSampleRequestSchema,
    GpsSampleSchema,
    SpeedViolationSchema,
)
from haulops.app.services.gps_ingestion_pipeline import GpsIngestionPipeline
from haulops.app.services.trip_statistics_engine import TripStatisticsEngine
from haulops.domain.exceptions import NotFoundError
from haulops.domain.models import GpsEventType, GpsSample

router = APIRouter(tags=["gps"])


def _to_sample(req: GpsSampleRequestSchema) -> GpsSample:
    return GpsSample(
        latitude=req.latitude,
        longitude=req.longitude,
        recorded_at=req.recorded_at or datetime.now(timezone.utc),
        event_type=GpsEventType(req.event_type),
        trip_id=req.trip_id,
        vehicle_id=req.vehicle_id,
        altitude=req.altitude,
        speed_kmh=req.speed_kmh,
        heading=req.heading,
        accuracy_meters=req.accuracy_meters,
    )


def sample_to_schema(sample: GpsSample) -> GpsSampleSchema:
    return GpsSampleSchema(
        id=sample.id,
        trip_id=sample.trip_id,
        vehicle_id=sample.vehicle_id,
        latitude=sample.latitude,
        longitude=sample.longitude,
        altitude=sample.altitude,
        speed_kmh=sample.speed_kmh,
        heading=sample.heading,
        accuracy_meters=sample.accuracy_meters,
        recorded_at=sample.recorded_at,
        event_type=sample.event_type.value,
    )


@router.post("/gps/samples", response_model=Envelope[GpsSampleSchema], status_code=201)
def record_gps_sample(
    req: GpsSampleRequestSchema,
    pipeline: GpsIngestionPipeline = Depends(get_gps_pipeline),
) -> Envelope[GpsSampleSchema]:
    stored = pipeline.record_sample(req.trip_id, _to_sample(req))
    if stored is None:
        # Persistence failures are not surfaced as errors to the device.
        return Envelope[GpsSampleSchema](data=None, message="GPS sample not stored")
    return Envelope[GpsSampleSchema](data=sample_to_schema(stored), message="GPS sample recorded")


@router.post("/gps/batch", response_model=Envelope[BatchResultSchema])
def record_gps_batch(
    req: GpsBatchRequestSchema,
    pipeline: GpsIngestionPipeline = Depends(get_gps_pipeline),
) -> Envelope[BatchResultSchema]:
    result = pipeline.record_batch(_to_sample(s) for s in req.samples)
    return Envelope[BatchResultSchema](
        data=BatchResultSchema(
            uploaded=result.uploaded, total=result.total, failed=result.failed
        ),
        message=f"{result.uploaded} of {result.total} samples uploaded",
    )


@router.get("/trips/{trip_id}/gps", response_model=Envelope[GpsHistorySchema])
def get_gps_history(
    trip_id: str,
    limit: int | None = Query(default=None, ge=1, le=10_000),
    start: datetime | None = None,
    end: datetime | None = None,
    include_analytics: bool = False,
    pipeline: GpsIngestionPipeline = Depends(get_gps_pipeline),
    engine: TripStatisticsEngine = Depends(get_statistics_engine),
) -> Envelope[GpsHistorySchema]:
    samples = pipeline.history(trip_id, limit=limit, start=start, end=end)
    statistics = None
    if include_analytics:
        statistics = statistics_to_schema(engine.compute_statistics(trip_id))

    return Envelope[GpsHistorySchema](
        data=GpsHistorySchema(
            trip_id=trip_id,
            samples=[sample_to_schema(s) for s in samples],
            statistics=statistics,
        )
    )


@router.get("/vehicles/positions", response_model=Envelope[list[GpsSampleSchema]])
def get_fleet_positions(
    pipeline: GpsIngestionPipeline = Depends(get_gps_pipeline),
) -> Envelope[list[GpsSampleSchema]]:
    positions = pipeline.fleet_positions()
    return Envelope[list[GpsSampleSchema]](data=[sample_to_schema(s) for s in positions])


@router.get("/vehicles/{vehicle_id}/position", response_model=Envelope[GpsSampleSchema])
def get_vehicle_position(
    vehicle_id: str,
    pipeline: GpsIngestionPipeline = Depends(get_gps_pipeline),
) -> Envelope[GpsSampleSchema]:
    latest = pipeline.latest_position(vehicle_id)
    if latest is None:
        raise NotFoundError(f"No position recorded for vehicle: {vehicle_id}")
    return Envelope[GpsSampleSchema](data=sample_to_schema(latest))


@router.get(
    "/trips/{trip_id}/speed-violations",
    response_model=Envelope[list[SpeedViolationSchema]],
)
def get_speed_violations(
    trip_id: str,
    threshold_kmh: float = Query(..., gt=0),
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    engine: TripStatisticsEngine = Depends(get_statistics_engine),
) -> Envelope[list[SpeedViolationSchema]]:
    violations = engine.speed_violations(
        trip_id, threshold_kmh, start=start, end=end, limit=limit
    )
    return Envelope[list[SpeedViolationSchema]](
        data=[
            SpeedViolationSchema(
                sample=sample_to_schema(v.sample),
                threshold_kmh=v.threshold_kmh,
                excess_kmh=v.excess_kmh,
                severity=v.severity.value,
            )
            for v in violations
        ],
        message=f"{len(violations)} speed violations",
    )
