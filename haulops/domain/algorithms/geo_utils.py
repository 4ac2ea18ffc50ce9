from __future__ import annotations

import math

from haulops.domain.exceptions import ValidationError
from haulops.domain.models import GeoPoint

EARTH_RADIUS_KM = 6371.0


def haversine_distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in kilometers.

    Trip distance totals and proximity radii both go through this function.
    """

    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lon)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    s = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    )
    # Rounding can push s a hair above 1.0 for antipodal points.
    s = min(1.0, max(0.0, s))
    return 2.0 * EARTH_RADIUS_KM * math.asin(math.sqrt(s))


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""

    return haversine_distance_km(a, b) * 1000.0


def bearing_deg(a: GeoPoint, b: GeoPoint) -> float:
    """Initial great-circle bearing from a to b, in [0, 360)."""

    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlon = math.radians(b.lon - a.lon)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlon
    )
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def is_valid_coordinates(lat: float, lon: float) -> bool:
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat_f) or math.isnan(lon_f):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lon_f <= 180.0


def validate_coordinates(lat: float, lon: float) -> GeoPoint:
    if not is_valid_coordinates(lat, lon):
        raise ValidationError(f"Invalid coordinates: lat={lat}, lon={lon}")
    return GeoPoint(lat=float(lat), lon=float(lon))
