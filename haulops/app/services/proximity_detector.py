from __future__ import annotations

from dataclasses import dataclass

from haulops.app.ports.output import ILocationSearch
from haulops.domain.algorithms.geo_utils import haversine_distance_km
from haulops.domain.exceptions import ValidationError
from haulops.domain.models import GeoPoint, LocationFilter, LocationType, NearbyLocation

_PICKUP = frozenset({LocationType.PICKUP, LocationType.BOTH})
_DELIVERY = frozenset({LocationType.DELIVERY, LocationType.BOTH})

PHASE_LOCATION_TYPES: dict[str, frozenset[LocationType]] = {
    "TO_LOADING": _PICKUP,
    "AT_LOADING": _PICKUP,
    "TO_UNLOADING": _DELIVERY,
    "AT_UNLOADING": _DELIVERY,
    "REFUEL": frozenset({LocationType.FUEL_STATION}),
    "BREAK": frozenset({LocationType.REST_AREA}),
}


def location_types_for_phase(phase: str | None) -> frozenset[LocationType] | None:
    """Location types relevant to an operation phase; None means no filter."""

    if not phase:
        return None
    return PHASE_LOCATION_TYPES.get(phase.strip().upper())


@dataclass(slots=True)
class ProximityDetector:
    location_search: ILocationSearch
    default_limit: int = 5

    def find_nearby(
        self,
        position: GeoPoint,
        radius_meters: float,
        phase: str | None = None,
        limit: int | None = None,
    ) -> list[NearbyLocation]:
        if radius_meters < 0:
            raise ValidationError("radius_meters must not be negative")
        limit = self.default_limit if limit is None else limit
        if limit < 1:
            raise ValidationError("limit must be positive")
        if radius_meters == 0:
            return []

        radius_km = radius_meters / 1000.0
        types = location_types_for_phase(phase)
        candidates = self.location_search.search(LocationFilter(location_types=types))

        nearby: list[NearbyLocation] = []
        for location in candidates:
            point = location.point
            if not location.is_active or point is None:
                continue
            if types is not None and location.location_type not in types:
                continue
            distance_km = haversine_distance_km(position, point)
            if distance_km <= radius_km:
                nearby.append(
                    NearbyLocation(location=location, distance_m=distance_km * 1000.0)
                )

        nearby.sort(key=lambda n: n.distance_m)
        return nearby[:limit]
