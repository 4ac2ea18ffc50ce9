from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from haulops.app.ports.output import ITripRepository, IUserLookup
from haulops.app.services.gps_ingestion_pipeline import GpsIngestionPipeline
from haulops.app.services.trip_statistics_engine import TripStatisticsEngine
from haulops.app.services.vehicle_status_coordinator import VehicleStatusCoordinator
from haulops.domain.algorithms.trip_transitions import ensure_transition
from haulops.domain.exceptions import ConflictError, NotFoundError
from haulops.domain.models import (
    GeoPoint,
    GpsEventType,
    GpsSample,
    Trip,
    TripStatus,
    VehicleOperationalStatus,
)
from haulops.domain.timeutils import ensure_utc_or_none

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_operation_number(now: datetime) -> str:
    """Human-facing trip reference, e.g. OP-1717000000000-3F9A1C2B7."""

    millis = int(now.timestamp() * 1000)
    return f"OP-{millis}-{uuid4().hex[:9].upper()}"


@dataclass(frozen=True, slots=True)
class StartTripRequest:
    vehicle_id: str
    driver_id: str | None = None
    start_position: GeoPoint | None = None
    planned_start: datetime | None = None
    planned_end: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class EndTripRequest:
    end_position: GeoPoint | None = None
    fuel_consumed_liters: float | None = None
    notes: str | None = None


@dataclass(slots=True)
class TripLifecycleManager:
    """Use cases for starting, ending and cancelling trips.

    The vehicle status flip is the exclusivity gate: only the caller that wins
    the compare-and-swap on the vehicle gets to create a trip for it.
    """

    trip_repository: ITripRepository
    coordinator: VehicleStatusCoordinator
    gps_pipeline: GpsIngestionPipeline
    statistics_engine: TripStatisticsEngine
    user_lookup: IUserLookup | None = None
    clock: Callable[[], datetime] = _utcnow

    def start_trip(self, request: StartTripRequest) -> Trip:
        vehicle = self.coordinator.vehicle_repository.get(request.vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle not found: {request.vehicle_id}")

        if request.driver_id and self.user_lookup is not None:
            if self.user_lookup.get(request.driver_id) is None:
                raise NotFoundError(f"Driver not found: {request.driver_id}")

        current = self.coordinator.to_business(vehicle.status)
        if current is not VehicleOperationalStatus.AVAILABLE or not (
            self.coordinator.can_change_status(current, VehicleOperationalStatus.IN_USE)
        ):
            raise ConflictError(
                f"Vehicle {vehicle.id} is unavailable (status {current.value})"
            )

        try:
            self.coordinator.change_status(
                vehicle.id,
                from_status=VehicleOperationalStatus.AVAILABLE,
                to_status=VehicleOperationalStatus.IN_USE,
            )
        except ConflictError as exc:
            raise ConflictError(
                f"Vehicle {vehicle.id} is unavailable (taken by another trip)"
            ) from exc

        now = self.clock()
        trip = Trip(
            id=str(uuid4()),
            vehicle_id=vehicle.id,
            driver_id=request.driver_id,
            status=TripStatus.IN_PROGRESS,
            operation_number=new_operation_number(now),
            planned_start=ensure_utc_or_none(request.planned_start),
            planned_end=ensure_utc_or_none(request.planned_end),
            actual_start=now,
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )

        try:
            self.trip_repository.add(trip)
        except Exception:
            logger.exception(
                "Failed to persist trip; reverting vehicle status",
                extra={"vehicle_id": vehicle.id, "trip_id": trip.id},
            )
            self.coordinator.release_after_trip(vehicle.id)
            raise

        if request.start_position is not None:
            self._store_fix(
                self._fix(trip, request.start_position, GpsEventType.TRIP_START, now)
            )

        logger.info(
            "Trip started",
            extra={
                "trip_id": trip.id,
                "vehicle_id": trip.vehicle_id,
                "driver_id": trip.driver_id,
            },
        )
        return trip

    def end_trip(self, trip_id: str, request: EndTripRequest | None = None) -> Trip:
        request = request or EndTripRequest()

        trip = self.get_trip(trip_id)
        ensure_transition(trip.status, TripStatus.COMPLETED)

        now = self.clock()
        end_fix = None
        if request.end_position is not None:
            end_fix = self._fix(trip, request.end_position, GpsEventType.TRIP_END, now)

        stats = self.statistics_engine.compute_statistics(
            trip.id, now, trip=trip, pending=(end_fix,) if end_fix else ()
        )

        completed = trip.with_changes(
            status=TripStatus.COMPLETED,
            actual_end=now,
            total_distance_km=stats.total_distance_km,
            duration_s=stats.duration_s,
            fuel_consumed_liters=(
                request.fuel_consumed_liters
                if request.fuel_consumed_liters is not None
                else trip.fuel_consumed_liters
            ),
            notes=request.notes if request.notes is not None else trip.notes,
            updated_at=now,
        )

        if not self.trip_repository.save_if_status(
            completed, expected_status=TripStatus.IN_PROGRESS
        ):
            raise ConflictError(
                f"Cannot change trip status from {trip.status.value} to "
                f"{TripStatus.COMPLETED.value}: trip was modified concurrently"
            )

        # Only the caller that completed the trip writes its end fix.
        if end_fix is not None:
            self._store_fix(end_fix)

        # Completion stands even if the vehicle cannot be released.
        self.coordinator.release_after_trip(trip.vehicle_id)

        logger.info(
            "Trip completed",
            extra={
                "trip_id": trip.id,
                "total_distance_km": stats.total_distance_km,
                "duration_s": stats.duration_s,
                "partial_stats": stats.partial,
            },
        )
        return completed

    def cancel_trip(self, trip_id: str, reason: str | None = None) -> Trip:
        trip = self.get_trip(trip_id)
        ensure_transition(trip.status, TripStatus.CANCELLED)

        notes = trip.notes
        if reason:
            notes = f"{notes}\nCancelled: {reason}" if notes else f"Cancelled: {reason}"

        cancelled = trip.with_changes(
            status=TripStatus.CANCELLED, notes=notes, updated_at=self.clock()
        )
        if not self.trip_repository.save_if_status(
            cancelled, expected_status=trip.status
        ):
            raise ConflictError(
                f"Cannot change trip status from {trip.status.value} to "
                f"{TripStatus.CANCELLED.value}: trip was modified concurrently"
            )

        if trip.status is TripStatus.IN_PROGRESS:
            self.coordinator.release_after_trip(trip.vehicle_id)

        logger.info("Trip cancelled", extra={"trip_id": trip.id, "reason": reason})
        return cancelled

    def get_trip(self, trip_id: str) -> Trip:
        trip = self.trip_repository.get(trip_id)
        if trip is None:
            raise NotFoundError(f"Trip not found: {trip_id}")
        return trip

    def get_current_trip(self, driver_id: str) -> Trip | None:
        return self.trip_repository.find_in_progress_by_driver(driver_id)

    @staticmethod
    def _fix(
        trip: Trip,
        position: GeoPoint,
        event_type: GpsEventType,
        recorded_at: datetime,
    ) -> GpsSample:
        return GpsSample(
            latitude=position.lat,
            longitude=position.lon,
            recorded_at=recorded_at,
            event_type=event_type,
            trip_id=trip.id,
            vehicle_id=trip.vehicle_id,
        )

    def _store_fix(self, sample: GpsSample) -> None:
        try:
            self.gps_pipeline.record_sample(sample.trip_id, sample)
        except Exception:
            logger.exception(
                "Failed to record trip fix",
                extra={"trip_id": sample.trip_id, "event_type": sample.event_type.value},
            )
