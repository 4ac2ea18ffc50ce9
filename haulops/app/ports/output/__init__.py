from .activity_repository import IActivityRepository
from .gps_sample_repository import IGpsSampleRepository
from .location_search import ILocationSearch
from .trip_repository import ITripRepository
from .user_lookup import IUserLookup
from .vehicle_repository import IVehicleRepository

__all__ = [
    "IActivityRepository",
    "IGpsSampleRepository",
    "ILocationSearch",
    "ITripRepository",
    "IUserLookup",
    "IVehicleRepository",
]
