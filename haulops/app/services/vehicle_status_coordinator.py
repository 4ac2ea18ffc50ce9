from __future__ import annotations

import logging
from dataclasses import dataclass

from haulops.app.ports.output import IVehicleRepository
from haulops.domain.exceptions import ConflictError, NotFoundError, ValidationError
from haulops.domain.models import PersistedVehicleStatus, VehicleOperationalStatus

logger = logging.getLogger(__name__)

_Business = VehicleOperationalStatus
_Persisted = PersistedVehicleStatus

# Both tables are total over their enums; there is deliberately no fallback.
PERSISTED_TO_BUSINESS: dict[PersistedVehicleStatus, VehicleOperationalStatus] = {
    _Persisted.ACTIVE: _Business.AVAILABLE,
    _Persisted.INACTIVE: _Business.IN_USE,
    _Persisted.MAINTENANCE: _Business.MAINTENANCE,
    _Persisted.RETIRED: _Business.OUT_OF_SERVICE,
}

BUSINESS_TO_PERSISTED: dict[VehicleOperationalStatus, PersistedVehicleStatus] = {
    _Business.AVAILABLE: _Persisted.ACTIVE,
    _Business.IN_USE: _Persisted.INACTIVE,
    _Business.MAINTENANCE: _Persisted.MAINTENANCE,
    _Business.OUT_OF_SERVICE: _Persisted.RETIRED,
}

# Persisted values that other parts of the fleet system read differently.
# INACTIVE is written by the trip lifecycle for "in use", while the vehicle
# master screens treat it as "out of service". Unresolved: needs a product
# decision, so it is surfaced here instead of being silently normalised.
AMBIGUOUS_PERSISTED_STATUSES: dict[
    PersistedVehicleStatus, tuple[VehicleOperationalStatus, ...]
] = {
    _Persisted.INACTIVE: (_Business.IN_USE, _Business.OUT_OF_SERVICE),
}

_STATUS_CHANGE_REASONS: dict[
    tuple[VehicleOperationalStatus, VehicleOperationalStatus], str
] = {
    (_Business.AVAILABLE, _Business.IN_USE): "trip started",
    (_Business.IN_USE, _Business.AVAILABLE): "trip ended",
    (_Business.MAINTENANCE, _Business.AVAILABLE): "maintenance completed",
    (_Business.OUT_OF_SERVICE, _Business.AVAILABLE): "service restored",
}


def _coerce_persisted(value: PersistedVehicleStatus | str) -> PersistedVehicleStatus:
    try:
        return PersistedVehicleStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown persisted vehicle status: {value!r}") from exc


def _coerce_business(
    value: VehicleOperationalStatus | str,
) -> VehicleOperationalStatus:
    try:
        return VehicleOperationalStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown vehicle status: {value!r}") from exc


@dataclass(slots=True)
class VehicleStatusCoordinator:
    """Maps, validates and performs vehicle status changes."""

    vehicle_repository: IVehicleRepository

    @staticmethod
    def to_business(
        persisted: PersistedVehicleStatus | str,
    ) -> VehicleOperationalStatus:
        status = _coerce_persisted(persisted)
        if status in AMBIGUOUS_PERSISTED_STATUSES:
            logger.debug(
                "Ambiguous persisted vehicle status decoded",
                extra={
                    "persisted": status.value,
                    "readings": [
                        s.value for s in AMBIGUOUS_PERSISTED_STATUSES[status]
                    ],
                },
            )
        return PERSISTED_TO_BUSINESS[status]

    @staticmethod
    def to_persisted(
        business: VehicleOperationalStatus | str,
    ) -> PersistedVehicleStatus:
        return BUSINESS_TO_PERSISTED[_coerce_business(business)]

    @staticmethod
    def is_ambiguous(persisted: PersistedVehicleStatus | str) -> bool:
        return _coerce_persisted(persisted) in AMBIGUOUS_PERSISTED_STATUSES

    @staticmethod
    def is_operational(status: VehicleOperationalStatus | str) -> bool:
        return _coerce_business(status) is _Business.AVAILABLE

    @staticmethod
    def can_change_status(
        from_status: VehicleOperationalStatus | str,
        to_status: VehicleOperationalStatus | str,
    ) -> bool:
        try:
            src = VehicleOperationalStatus(from_status)
            dst = VehicleOperationalStatus(to_status)
        except ValueError:
            return False

        if (src, dst) in {
            (_Business.AVAILABLE, _Business.IN_USE),
            (_Business.IN_USE, _Business.AVAILABLE),
        }:
            return True
        if dst is _Business.MAINTENANCE:
            return True
        if src is _Business.MAINTENANCE and dst is _Business.AVAILABLE:
            return True
        if _Business.OUT_OF_SERVICE in (src, dst):
            return True
        return False

    @staticmethod
    def status_change_reason(
        from_status: VehicleOperationalStatus, to_status: VehicleOperationalStatus
    ) -> str:
        reason = _STATUS_CHANGE_REASONS.get((from_status, to_status))
        if reason:
            return reason
        if to_status is _Business.MAINTENANCE:
            return "maintenance started"
        if to_status is _Business.OUT_OF_SERVICE:
            return "taken out of service"
        return "status changed"

    def current_status(self, vehicle_id: str) -> VehicleOperationalStatus:
        vehicle = self.vehicle_repository.get(vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle not found: {vehicle_id}")
        return self.to_business(vehicle.status)

    def change_status(
        self,
        vehicle_id: str,
        *,
        from_status: VehicleOperationalStatus,
        to_status: VehicleOperationalStatus,
    ) -> None:
        """Validated compare-and-swap of a vehicle's status.

        Raises ConflictError if the transition is not whitelisted or the stored
        status is no longer `from_status`.
        """

        if not self.can_change_status(from_status, to_status):
            raise ConflictError(
                f"Vehicle status change {from_status.value} -> {to_status.value} "
                "is not allowed"
            )

        swapped = self.vehicle_repository.compare_and_set_status(
            vehicle_id,
            expected=self.to_persisted(from_status),
            new=self.to_persisted(to_status),
        )
        if not swapped:
            raise ConflictError(
                f"Vehicle {vehicle_id} is no longer {from_status.value}"
            )

        logger.info(
            "Vehicle status changed",
            extra={
                "vehicle_id": vehicle_id,
                "from": from_status.value,
                "to": to_status.value,
                "reason": self.status_change_reason(from_status, to_status),
            },
        )

    def release_after_trip(self, vehicle_id: str) -> bool:
        """Best-effort IN_USE -> AVAILABLE once a trip has finished.

        Never raises; returns whether the vehicle was released.
        """

        try:
            self.change_status(
                vehicle_id,
                from_status=_Business.IN_USE,
                to_status=_Business.AVAILABLE,
            )
            return True
        except Exception:
            logger.exception(
                "Failed to release vehicle after trip",
                extra={"vehicle_id": vehicle_id},
            )
            return False
