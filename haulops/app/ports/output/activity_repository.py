from __future__ import annotations

from abc import ABC, abstractmethod

from haulops.domain.models import ActivityRecord


class IActivityRepository(ABC):
    """Read port for loading/unloading records written by another service."""

    @abstractmethod
    def list_for_trip(self, trip_id: str) -> list[ActivityRecord]:
        raise NotImplementedError
