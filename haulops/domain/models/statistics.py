from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from haulops.domain.models.gps import GpsSample


@dataclass(frozen=True, slots=True)
class TripStatistics:
    """Derived per-trip figures. Never stored as an entity of its own."""

    total_distance_km: float = 0.0
    duration_s: float = 0.0
    average_speed_kmh: float = 0.0
    max_speed_kmh: float = 0.0
    gps_point_count: int = 0
    # True when a sample cap or the time budget cut the run short.
    partial: bool = False
    activity_count: int = 0
    total_quantity: float = 0.0


class ViolationSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True, slots=True)
class SpeedViolation:
    sample: GpsSample
    threshold_kmh: float
    excess_kmh: float
    severity: ViolationSeverity
