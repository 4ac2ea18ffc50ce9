from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable

from haulops.app.ports.output import IGpsSampleRepository, ITripRepository
from haulops.domain.algorithms.geo_utils import is_valid_coordinates
from haulops.domain.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from haulops.domain.models import GpsEventType, GpsSample, TripStatus
from haulops.domain.timeutils import ensure_utc_or_none

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchResult:
    uploaded: int
    total: int
    failed: int


@dataclass(slots=True)
class GpsIngestionPipeline:
    """Validates and records position samples.

    Persistence failures are isolated: they are logged and reported as a
    `None` result, never raised to the caller.
    """

    gps_repository: IGpsSampleRepository
    trip_repository: ITripRepository
    batch_workers: int = 8
    default_history_limit: int = 1000

    def record_sample(self, trip_id: str | None, sample: GpsSample) -> GpsSample | None:
        if not is_valid_coordinates(sample.latitude, sample.longitude):
            raise ValidationError(
                f"Invalid coordinates: lat={sample.latitude}, lon={sample.longitude}"
            )
        if sample.heading is not None and not (0.0 <= sample.heading <= 360.0):
            raise ValidationError(f"Invalid heading: {sample.heading}")
        if sample.speed_kmh is not None and sample.speed_kmh < 0:
            raise ValidationError(f"Invalid speed: {sample.speed_kmh}")

        trip_id = trip_id or sample.trip_id
        vehicle_id = sample.vehicle_id

        if trip_id:
            trip = self.trip_repository.get(trip_id)
            if trip is None:
                raise NotFoundError(f"Trip not found: {trip_id}")
            if (
                sample.event_type is GpsEventType.LOCATION_UPDATE
                and trip.status is not TripStatus.IN_PROGRESS
            ):
                raise ConflictError(
                    f"Trip {trip_id} is {trip.status.value}; "
                    "location updates require IN_PROGRESS"
                )
            vehicle_id = vehicle_id or trip.vehicle_id

        stored = replace(sample, trip_id=trip_id, vehicle_id=vehicle_id)

        try:
            self.gps_repository.add(stored)
        except Exception:
            logger.exception(
                "Failed to persist GPS sample",
                extra={
                    "trip_id": trip_id,
                    "vehicle_id": vehicle_id,
                    "event_type": stored.event_type.value,
                },
            )
            return None

        return stored

    def record_batch(self, samples: Iterable[GpsSample]) -> BatchResult:
        items = list(samples)
        if not items:
            return BatchResult(uploaded=0, total=0, failed=0)

        workers = max(1, min(int(self.batch_workers), len(items)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(self._record_isolated, items))

        uploaded = sum(1 for ok in outcomes if ok)
        return BatchResult(uploaded=uploaded, total=len(items), failed=len(items) - uploaded)

    def _record_isolated(self, sample: GpsSample) -> bool:
        try:
            return self.record_sample(sample.trip_id, sample) is not None
        except DomainError as exc:
            logger.warning(
                "Rejected GPS sample in batch",
                extra={"trip_id": sample.trip_id, "error": str(exc)},
            )
            return False
        except Exception:
            logger.exception(
                "Unexpected error recording GPS sample in batch",
                extra={"trip_id": sample.trip_id},
            )
            return False

    def history(
        self,
        trip_id: str,
        *,
        limit: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[GpsSample]:
        """Samples of a trip, ascending by `recorded_at`."""

        if self.trip_repository.get(trip_id) is None:
            raise NotFoundError(f"Trip not found: {trip_id}")
        if limit is not None and limit < 1:
            raise ValidationError("limit must be positive")
        start, end = ensure_utc_or_none(start), ensure_utc_or_none(end)
        if start is not None and end is not None and start > end:
            raise ValidationError("start must not be after end")

        samples = self.gps_repository.list_for_trip(
            trip_id,
            limit=limit or self.default_history_limit,
            start=start,
            end=end,
        )
        return sorted(samples, key=lambda s: s.recorded_at)

    def latest_position(self, vehicle_id: str) -> GpsSample | None:
        return self.gps_repository.latest_for_vehicle(vehicle_id)

    def fleet_positions(self) -> list[GpsSample]:
        """Latest fix of every vehicle that has reported, newest first."""

        positions = self.gps_repository.latest_per_vehicle()
        return sorted(positions, key=lambda s: s.recorded_at, reverse=True)
