from __future__ import annotations

import logging
from dataclasses import dataclass

from haulops.adapters.directory.http_user_directory import HttpUserDirectory
from haulops.adapters.persistence import (
    CsvLocationRepository,
    DynamoDbActivityRepository,
    DynamoDbGpsSampleRepository,
    DynamoDbTripRepository,
    DynamoDbVehicleRepository,
    InMemoryActivityRepository,
    InMemoryGpsSampleRepository,
    InMemoryTripRepository,
    InMemoryVehicleRepository,
    load_vehicles_csv,
)
from haulops.app.ports.output import (
    IActivityRepository,
    IGpsSampleRepository,
    ILocationSearch,
    ITripRepository,
    IUserLookup,
    IVehicleRepository,
)
from haulops.app.services.gps_ingestion_pipeline import GpsIngestionPipeline
from haulops.app.services.proximity_detector import ProximityDetector
from haulops.app.services.trip_lifecycle_manager import TripLifecycleManager
from haulops.app.services.trip_statistics_engine import TripStatisticsEngine
from haulops.app.services.vehicle_status_coordinator import VehicleStatusCoordinator
from haulops.config import Settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Container:
    """Services wired once per process and shared by all requests."""

    settings: Settings
    coordinator: VehicleStatusCoordinator
    gps_pipeline: GpsIngestionPipeline
    statistics_engine: TripStatisticsEngine
    proximity_detector: ProximityDetector
    lifecycle_manager: TripLifecycleManager


def wire_services(
    settings: Settings,
    *,
    trips: ITripRepository,
    vehicles: IVehicleRepository,
    gps_samples: IGpsSampleRepository,
    locations: ILocationSearch,
    users: IUserLookup | None = None,
    activities: IActivityRepository | None = None,
) -> Container:
    coordinator = VehicleStatusCoordinator(vehicle_repository=vehicles)
    gps_pipeline = GpsIngestionPipeline(
        gps_repository=gps_samples,
        trip_repository=trips,
        batch_workers=settings.gps_batch_workers,
    )
    statistics_engine = TripStatisticsEngine(
        gps_repository=gps_samples,
        trip_repository=trips,
        activity_repository=activities,
        max_samples=settings.stats_max_samples,
        time_budget_s=settings.stats_time_budget_s,
    )
    proximity_detector = ProximityDetector(
        location_search=locations,
        default_limit=settings.nearby_default_limit,
    )
    lifecycle_manager = TripLifecycleManager(
        trip_repository=trips,
        coordinator=coordinator,
        gps_pipeline=gps_pipeline,
        statistics_engine=statistics_engine,
        user_lookup=users,
    )
    return Container(
        settings=settings,
        coordinator=coordinator,
        gps_pipeline=gps_pipeline,
        statistics_engine=statistics_engine,
        proximity_detector=proximity_detector,
        lifecycle_manager=lifecycle_manager,
    )


def build_container(settings: Settings | None = None) -> Container:
    settings = settings or Settings.from_env()

    trips: ITripRepository
    vehicles: IVehicleRepository
    gps_samples: IGpsSampleRepository
    activities: IActivityRepository
    if settings.storage == "dynamodb":
        trips = DynamoDbTripRepository(table_name=settings.trips_table)
        vehicles = DynamoDbVehicleRepository(table_name=settings.vehicles_table)
        gps_samples = DynamoDbGpsSampleRepository(table_name=settings.gps_table)
        activities = DynamoDbActivityRepository(table_name=settings.activities_table)
    else:
        trips = InMemoryTripRepository()
        # Memory mode has no vehicle master of its own; seed it from CSV.
        seed = load_vehicles_csv(settings.vehicles_csv_path) if settings.vehicles_csv_path else []
        if not seed:
            logger.warning("In-memory vehicle master is empty; set VEHICLES_CSV_PATH")
        vehicles = InMemoryVehicleRepository.with_vehicles(seed)
        gps_samples = InMemoryGpsSampleRepository()
        activities = InMemoryActivityRepository()

    users: IUserLookup | None = None
    if settings.user_directory_url:
        users = HttpUserDirectory(base_url=settings.user_directory_url)

    logger.info(
        "Wiring services",
        extra={"storage": settings.storage, "user_directory": bool(users)},
    )
    return wire_services(
        settings,
        trips=trips,
        vehicles=vehicles,
        gps_samples=gps_samples,
        locations=CsvLocationRepository(path=settings.locations_csv_path),
        users=users,
        activities=activities,
    )
