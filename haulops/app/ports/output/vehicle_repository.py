from __future__ import annotations

from abc import ABC, abstractmethod

from haulops.domain.models import PersistedVehicleStatus, Vehicle


class IVehicleRepository(ABC):
    """Port onto the vehicle master (lookup + status column)."""

    @abstractmethod
    def get(self, vehicle_id: str) -> Vehicle | None:
        raise NotImplementedError

    @abstractmethod
    def compare_and_set_status(
        self,
        vehicle_id: str,
        *,
        expected: PersistedVehicleStatus,
        new: PersistedVehicleStatus,
    ) -> bool:
        """Atomically set `new` if the stored status equals `expected`."""
