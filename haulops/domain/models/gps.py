from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import uuid4

from haulops.domain.timeutils import ensure_utc


class GpsEventType(str, Enum):
    TRIP_START = "TRIP_START"
    TRIP_END = "TRIP_END"
    LOCATION_UPDATE = "LOCATION_UPDATE"


@dataclass(frozen=True, slots=True)
class GpsSample:
    """A single timestamped position fix.

    Samples are append-only. Their logical order is `recorded_at`, never the
    order in which they were written.
    """

    latitude: float
    longitude: float
    recorded_at: datetime
    event_type: GpsEventType = GpsEventType.LOCATION_UPDATE
    trip_id: str | None = None
    vehicle_id: str | None = None
    altitude: float | None = None
    speed_kmh: float | None = None
    heading: float | None = None
    accuracy_meters: float | None = None
    id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self) -> None:
        # Mixed naive/aware timestamps cannot be ordered; store UTC only.
        object.__setattr__(self, "recorded_at", ensure_utc(self.recorded_at))
