from __future__ import annotations

from abc import ABC, abstractmethod

from haulops.domain.models import Trip, TripStatus


class ITripRepository(ABC):
    """Persistence port for trips (operations)."""

    @abstractmethod
    def get(self, trip_id: str) -> Trip | None:
        raise NotImplementedError

    @abstractmethod
    def add(self, trip: Trip) -> None:
        """Insert a new trip. Raises if the id already exists."""

    @abstractmethod
    def save_if_status(self, trip: Trip, *, expected_status: TripStatus) -> bool:
        """Overwrite the stored trip only if its status is still `expected_status`.

        Returns False when the stored status no longer matches (lost race) or
        the trip does not exist.
        """

    @abstractmethod
    def find_in_progress_by_driver(self, driver_id: str) -> Trip | None:
        """Latest IN_PROGRESS trip of a driver, by actual start."""
