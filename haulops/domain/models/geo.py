from __future__ import annotations

import math
from dataclasses import dataclass

from haulops.domain.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """WGS84 position in decimal degrees."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise ValidationError(
                f"Coordinates must be finite numbers: lat={self.lat}, lon={self.lon}"
            )
        if not -90.0 <= self.lat <= 90.0:
            raise ValidationError(f"Latitude out of range [-90, 90]: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValidationError(f"Longitude out of range [-180, 180]: {self.lon}")
