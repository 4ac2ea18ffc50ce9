from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .geo import GeoPoint


class LocationType(str, Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"
    BOTH = "BOTH"
    FUEL_STATION = "FUEL_STATION"
    REST_AREA = "REST_AREA"
    DEPOT = "DEPOT"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class Location:
    """Point of interest from the location master.

    Coordinates are optional: not every site has been geo-tagged.
    """

    id: str
    name: str
    location_type: LocationType
    latitude: float | None = None
    longitude: float | None = None
    is_active: bool = True

    @property
    def point(self) -> GeoPoint | None:
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(lat=self.latitude, lon=self.longitude)


@dataclass(frozen=True, slots=True)
class LocationFilter:
    location_types: frozenset[LocationType] | None = None
    active_only: bool = True


@dataclass(frozen=True, slots=True)
class NearbyLocation:
    location: Location
    distance_m: float
