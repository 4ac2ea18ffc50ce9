from __future__ import annotations

from fastapi import Request

from haulops.app.services.gps_ingestion_pipeline import GpsIngestionPipeline
from haulops.app.services.proximity_detector import ProximityDetector
from haulops.app.services.trip_lifecycle_manager import TripLifecycleManager
from haulops.app.services.trip_statistics_engine import TripStatisticsEngine
from haulops.container import Container


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_lifecycle_manager(request: Request) -> TripLifecycleManager:
    return get_container(request).lifecycle_manager


def get_gps_pipeline(request: Request) -> GpsIngestionPipeline:
    return get_container(request).gps_pipeline


def get_statistics_engine(request: Request) -> TripStatisticsEngine:
    return get_container(request).statistics_engine


def get_proximity_detector(request: Request) -> ProximityDetector:
    return get_container(request).proximity_detector
