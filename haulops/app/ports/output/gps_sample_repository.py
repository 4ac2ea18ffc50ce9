from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from haulops.domain.models import GpsSample


class IGpsSampleRepository(ABC):
    """Append-only store of position samples."""

    @abstractmethod
    def add(self, sample: GpsSample) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_for_trip(
        self,
        trip_id: str,
        *,
        limit: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[GpsSample]:
        """Return up to `limit` most recent samples of a trip.

        Result order is unspecified; callers sort by `recorded_at`.
        """

    @abstractmethod
    def latest_for_vehicle(self, vehicle_id: str) -> GpsSample | None:
        """Most recent sample of a vehicle by `recorded_at`, trip or not."""

    @abstractmethod
    def latest_per_vehicle(self) -> list[GpsSample]:
        """One sample per vehicle: its most recent by `recorded_at`."""
