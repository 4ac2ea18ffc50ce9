from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from haulops.adapters.api.dependencies import (
    get_lifecycle_manager,
    get_statistics_engine,
)
from haulops.adapters.api.schemas.common import Envelope
from haulops.adapters.api.schemas.trips import (
    CancelTripRequestSchema,
    EndTripRequestSchema,
    StartTripRequestSchema,
    TripSchema,
    TripStatisticsSchema,
)
from haulops.app.services.trip_lifecycle_manager import (
    EndTripRequest,
    StartTripRequest,
    TripLifecycleManager,
)
from haulops.app.services.trip_statistics_engine import TripStatisticsEngine
from haulops.domain.models import GeoPoint, Trip, TripStatistics

router = APIRouter(prefix="/trips", tags=["trips"])


def trip_to_schema(trip: Trip) -> TripSchema:
    return TripSchema(
        id=trip.id,
        vehicle_id=trip.vehicle_id,
        driver_id=trip.driver_id,
        status=trip.status.value,
        operation_number=trip.operation_number,
        planned_start=trip.planned_start,
        planned_end=trip.planned_end,
        actual_start=trip.actual_start,
        actual_end=trip.actual_end,
        total_distance_km=trip.total_distance_km,
        duration_s=trip.duration_s,
        fuel_consumed_liters=trip.fuel_consumed_liters,
        notes=trip.notes,
        created_at=trip.created_at,
        updated_at=trip.updated_at,
    )


def statistics_to_schema(stats: TripStatistics) -> TripStatisticsSchema:
    return TripStatisticsSchema(
        total_distance_km=stats.total_distance_km,
        duration_s=stats.duration_s,
        average_speed_kmh=stats.average_speed_kmh,
        max_speed_kmh=stats.max_speed_kmh,
        gps_point_count=stats.gps_point_count,
        partial=stats.partial,
        activity_count=stats.activity_count,
        total_quantity=stats.total_quantity,
    )


@router.post("", response_model=Envelope[TripSchema], status_code=201)
def start_trip(
    req: StartTripRequestSchema,
    manager: TripLifecycleManager = Depends(get_lifecycle_manager),
) -> Envelope[TripSchema]:
    start_position = None
    if req.start_position is not None:
        start_position = GeoPoint(lat=req.start_position.lat, lon=req.start_position.lon)

    trip = manager.start_trip(
        StartTripRequest(
            vehicle_id=req.vehicle_id,
            driver_id=req.driver_id,
            start_position=start_position,
            planned_start=req.planned_start,
            planned_end=req.planned_end,
            notes=req.notes,
        )
    )
    return Envelope[TripSchema](data=trip_to_schema(trip), message="Trip started")


@router.get("/current", response_model=Envelope[TripSchema])
def get_current_trip(
    driver_id: str = Query(..., min_length=1),
    manager: TripLifecycleManager = Depends(get_lifecycle_manager),
) -> Envelope[TripSchema]:
    trip = manager.get_current_trip(driver_id)
    if trip is None:
        return Envelope[TripSchema](data=None, message="No trip in progress")
    return Envelope[TripSchema](data=trip_to_schema(trip))


@router.get("/{trip_id}", response_model=Envelope[TripSchema])
def get_trip(
    trip_id: str,
    manager: TripLifecycleManager = Depends(get_lifecycle_manager),
) -> Envelope[TripSchema]:
    return Envelope[TripSchema](data=trip_to_schema(manager.get_trip(trip_id)))


@router.post("/{trip_id}/end", response_model=Envelope[TripSchema])
def end_trip(
    trip_id: str,
    req: EndTripRequestSchema | None = None,
    manager: TripLifecycleManager = Depends(get_lifecycle_manager),
) -> Envelope[TripSchema]:
    req = req or EndTripRequestSchema()
    end_position = None
    if req.end_position is not None:
        end_position = GeoPoint(lat=req.end_position.lat, lon=req.end_position.lon)

    trip = manager.end_trip(
        trip_id,
        EndTripRequest(
            end_position=end_position,
            fuel_consumed_liters=req.fuel_consumed_liters,
            notes=req.notes,
        ),
    )
    return Envelope[TripSchema](data=trip_to_schema(trip), message="Trip completed")


@router.post("/{trip_id}/cancel", response_model=Envelope[TripSchema])
def cancel_trip(
    trip_id: str,
    req: CancelTripRequestSchema | None = None,
    manager: TripLifecycleManager = Depends(get_lifecycle_manager),
) -> Envelope[TripSchema]:
    reason = req.reason if req is not None else None
    trip = manager.cancel_trip(trip_id, reason)
    return Envelope[TripSchema](data=trip_to_schema(trip), message="Trip cancelled")


@router.get("/{trip_id}/statistics", response_model=Envelope[TripStatisticsSchema])
def get_trip_statistics(
    trip_id: str,
    engine: TripStatisticsEngine = Depends(get_statistics_engine),
) -> Envelope[TripStatisticsSchema]:
    stats = engine.compute_statistics(trip_id)
    return Envelope[TripStatisticsSchema](data=statistics_to_schema(stats))
