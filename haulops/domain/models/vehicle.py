from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class VehicleOperationalStatus(str, Enum):
    """Business-level vehicle state used by the trip lifecycle."""

    AVAILABLE = "AVAILABLE"
    IN_USE = "IN_USE"
    MAINTENANCE = "MAINTENANCE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class PersistedVehicleStatus(str, Enum):
    """Vehicle status as stored by the vehicle master."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MAINTENANCE = "MAINTENANCE"
    RETIRED = "RETIRED"


@dataclass(frozen=True, slots=True)
class Vehicle:
    id: str
    status: PersistedVehicleStatus
    plate_number: str | None = None
    model: str | None = None
