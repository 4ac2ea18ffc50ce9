from __future__ import annotations

from haulops.domain.exceptions import ConflictError
from haulops.domain.models import TripStatus

ALLOWED_TRIP_TRANSITIONS: dict[TripStatus, frozenset[TripStatus]] = {
    TripStatus.PLANNING: frozenset({TripStatus.IN_PROGRESS, TripStatus.CANCELLED}),
    TripStatus.IN_PROGRESS: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}


def can_transition(current: TripStatus, requested: TripStatus) -> bool:
    return requested in ALLOWED_TRIP_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: TripStatus, requested: TripStatus) -> None:
    if not can_transition(current, requested):
        raise ConflictError(
            f"Cannot change trip status from {current.value} to {requested.value}"
        )
