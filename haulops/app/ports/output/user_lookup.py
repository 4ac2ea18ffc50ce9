from __future__ import annotations

from abc import ABC, abstractmethod

from haulops.domain.models import Driver


class IUserLookup(ABC):
    """Port onto the user directory (drivers)."""

    @abstractmethod
    def get(self, driver_id: str) -> Driver | None:
        raise NotImplementedError
