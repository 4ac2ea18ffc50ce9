from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class TripStatus(str, Enum):
    PLANNING = "PLANNING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True, slots=True)
class Trip:
    """One driver + vehicle assignment (stored as an "operation").

    `actual_end` is set iff the trip is COMPLETED.
    """

    id: str
    vehicle_id: str
    status: TripStatus
    driver_id: str | None = None
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

    def with_changes(self, **changes) -> Trip:
        return replace(self, **changes)
