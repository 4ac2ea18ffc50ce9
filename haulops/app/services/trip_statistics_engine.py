from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from haulops.app.ports.output import (
    IActivityRepository,
    IGpsSampleRepository,
    ITripRepository,
)
from haulops.domain.algorithms.geo_utils import haversine_distance_km
from haulops.domain.algorithms.speed_violations import find_speed_violations
from haulops.domain.exceptions import NotFoundError, ValidationError
from haulops.domain.models import (
    GeoPoint,
    GpsSample,
    SpeedViolation,
    Trip,
    TripStatistics,
)
from haulops.domain.timeutils import ensure_utc_or_none

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def summarize_samples(
    samples: list[GpsSample],
    *,
    deadline: float | None = None,
    monotonic: Callable[[], float] = time.monotonic,
) -> tuple[float, float, float, bool]:
    """Distance and speed figures over samples already sorted by time.

    Returns (total_distance_km, average_speed_kmh, max_speed_kmh, cut_short).
    """

    total_km = 0.0
    speed_sum = 0.0
    speed_count = 0
    max_speed = 0.0
    prev: GeoPoint | None = None

    for i, s in enumerate(samples):
        # Checking the clock every sample would dominate the loop.
        if deadline is not None and i % 256 == 0 and monotonic() > deadline:
            average = speed_sum / speed_count if speed_count else 0.0
            return total_km, average, max_speed, True

        point = GeoPoint(lat=s.latitude, lon=s.longitude)
        if prev is not None:
            total_km += haversine_distance_km(prev, point)
        prev = point

        if s.speed_kmh is not None:
            speed_sum += s.speed_kmh
            speed_count += 1
            max_speed = max(max_speed, s.speed_kmh)

    average = speed_sum / speed_count if speed_count else 0.0
    return total_km, average, max_speed, False


@dataclass(slots=True)
class TripStatisticsEngine:
    gps_repository: IGpsSampleRepository
    trip_repository: ITripRepository
    activity_repository: IActivityRepository | None = None
    max_samples: int = 10_000
    time_budget_s: float | None = 5.0
    clock: Callable[[], datetime] = _utcnow
    monotonic: Callable[[], float] = field(default=time.monotonic)

    def compute_statistics(
        self,
        trip_id: str,
        end_time: datetime | None = None,
        *,
        trip: Trip | None = None,
        pending: Sequence[GpsSample] = (),
    ) -> TripStatistics:
        """Distance, duration and speed figures for one trip.

        Only the `max_samples` most recent samples are considered; when the cap
        or the time budget cuts the run short the result is flagged `partial`.
        `pending` samples are counted as if already stored.
        """

        trip = trip or self._get_trip(trip_id)
        end_time = ensure_utc_or_none(end_time)

        started = self.monotonic()
        deadline = started + self.time_budget_s if self.time_budget_s else None

        # One extra row tells us whether the cap was hit.
        samples = self.gps_repository.list_for_trip(trip_id, limit=self.max_samples + 1)
        samples = sorted([*samples, *pending], key=lambda s: s.recorded_at)
        capped = len(samples) > self.max_samples
        if capped:
            samples = samples[-self.max_samples :]

        total_km, avg_speed, max_speed, cut_short = summarize_samples(
            samples, deadline=deadline, monotonic=self.monotonic
        )

        end = end_time or trip.actual_end or self.clock()
        # No samples means nothing was tracked; every figure stays zero.
        duration_s = 0.0
        if samples and trip.actual_start is not None:
            duration_s = max(0.0, (end - trip.actual_start).total_seconds())

        activity_count = 0
        total_quantity = 0.0
        if self.activity_repository is not None:
            activities = self.activity_repository.list_for_trip(trip_id)
            activity_count = len(activities)
            total_quantity = sum(a.quantity for a in activities)

        partial = capped or cut_short
        if partial:
            logger.warning(
                "Trip statistics are partial",
                extra={
                    "trip_id": trip_id,
                    "sample_cap_hit": capped,
                    "time_budget_hit": cut_short,
                },
            )

        return TripStatistics(
            total_distance_km=total_km,
            duration_s=duration_s,
            average_speed_kmh=avg_speed,
            max_speed_kmh=max_speed,
            gps_point_count=len(samples),
            partial=partial,
            activity_count=activity_count,
            total_quantity=total_quantity,
        )

    def speed_violations(
        self,
        trip_id: str,
        threshold_kmh: float,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
    ) -> list[SpeedViolation]:
        """Samples of a trip at or above `threshold_kmh`, fastest first."""

        if not threshold_kmh > 0:
            raise ValidationError(f"Speed threshold must be positive: {threshold_kmh}")
        if limit < 1:
            raise ValidationError("limit must be positive")
        self._get_trip(trip_id)

        samples = self.gps_repository.list_for_trip(
            trip_id,
            limit=self.max_samples,
            start=ensure_utc_or_none(start),
            end=ensure_utc_or_none(end),
        )
        return find_speed_violations(samples, threshold_kmh, limit=limit)

    def _get_trip(self, trip_id: str) -> Trip:
        trip = self.trip_repository.get(trip_id)
        if trip is None:
            raise NotFoundError(f"Trip not found: {trip_id}")
        return trip
