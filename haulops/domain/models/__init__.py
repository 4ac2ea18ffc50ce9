from .activity import ActivityRecord, ActivityType
from .driver import Driver
from .geo import GeoPoint
from .gps import GpsEventType, GpsSample
from .location import Location, LocationFilter, LocationType, NearbyLocation
from .statistics import SpeedViolation, TripStatistics, ViolationSeverity
from .trip import Trip, TripStatus
from .vehicle import PersistedVehicleStatus, Vehicle, VehicleOperationalStatus

__all__ = [
    "ActivityRecord",
    "ActivityType",
    "Driver",
    "GeoPoint",
    "GpsEventType",
    "GpsSample",
    "Location",
    "LocationFilter",
    "LocationType",
    "NearbyLocation",
    "PersistedVehicleStatus",
    "SpeedViolation",
    "Trip",
    "TripStatistics",
    "TripStatus",
    "Vehicle",
    "VehicleOperationalStatus",
    "ViolationSeverity",
]
