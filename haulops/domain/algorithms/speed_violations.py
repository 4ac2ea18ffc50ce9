from __future__ import annotations

from typing import Iterable

from haulops.domain.models import GpsSample, SpeedViolation, ViolationSeverity

# Lower bound of excess speed (km/h) for each severity, highest first.
SEVERITY_STEPS: tuple[tuple[float, ViolationSeverity], ...] = (
    (40.0, ViolationSeverity.CRITICAL),
    (20.0, ViolationSeverity.HIGH),
    (10.0, ViolationSeverity.MEDIUM),
)


def severity_for(excess_kmh: float) -> ViolationSeverity:
    for floor, severity in SEVERITY_STEPS:
        if excess_kmh >= floor:
            return severity
    return ViolationSeverity.LOW


def find_speed_violations(
    samples: Iterable[GpsSample], threshold_kmh: float, *, limit: int | None = None
) -> list[SpeedViolation]:
    """Samples at or above `threshold_kmh`, fastest first.

    Samples without a speed reading are ignored. Ties keep time order.
    """

    hits = [
        SpeedViolation(
            sample=s,
            threshold_kmh=threshold_kmh,
            excess_kmh=s.speed_kmh - threshold_kmh,
            severity=severity_for(s.speed_kmh - threshold_kmh),
        )
        for s in sorted(samples, key=lambda s: s.recorded_at)
        if s.speed_kmh is not None and s.speed_kmh >= threshold_kmh
    ]
    hits.sort(key=lambda v: v.excess_kmh, reverse=True)
    return hits[:limit] if limit is not None else hits
