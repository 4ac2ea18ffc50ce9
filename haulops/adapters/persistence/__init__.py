from .csv_location_repository import CsvLocationRepository
from .csv_vehicle_loader import load_vehicles_csv
from .dynamodb_activity_repository import DynamoDbActivityRepository
from .dynamodb_gps_sample_repository import DynamoDbGpsSampleRepository
from .dynamodb_trip_repository import DynamoDbTripRepository
from .dynamodb_vehicle_repository import DynamoDbVehicleRepository
from .in_memory import (
    InMemoryActivityRepository,
    InMemoryGpsSampleRepository,
    InMemoryLocationSearch,
    InMemoryTripRepository,
    InMemoryUserLookup,
    InMemoryVehicleRepository,
)

__all__ = [
    "CsvLocationRepository",
    "DynamoDbActivityRepository",
    "DynamoDbGpsSampleRepository",
    "DynamoDbTripRepository",
    "DynamoDbVehicleRepository",
    "InMemoryActivityRepository",
    "InMemoryGpsSampleRepository",
    "InMemoryLocationSearch",
    "InMemoryTripRepository",
    "InMemoryUserLookup",
    "InMemoryVehicleRepository",
    "load_vehicles_csv",
]
