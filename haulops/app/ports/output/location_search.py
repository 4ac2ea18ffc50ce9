from __future__ import annotations

from abc import ABC, abstractmethod

from haulops.domain.models import Location, LocationFilter


class ILocationSearch(ABC):
    """Port onto the location master."""

    @abstractmethod
    def search(self, location_filter: LocationFilter) -> tuple[Location, ...]:
        raise NotImplementedError
