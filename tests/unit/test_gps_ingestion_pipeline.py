from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from haulops.adapters.persistence import (
    InMemoryGpsSampleRepository,
    InMemoryTripRepository,
)
from haulops.app.services.gps_ingestion_pipeline import BatchResult, GpsIngestionPipeline
from haulops.domain.exceptions import ConflictError, NotFoundError, ValidationError
from haulops.domain.models import GpsEventType, GpsSample, Trip, TripStatus

T0 = datetime(2025, 10, 1, 8, 0, tzinfo=timezone.utc)


@dataclass(slots=True)
class FailingGpsRepository:
    def add(self, sample: GpsSample) -> None:
        raise RuntimeError("write timeout")

    def list_for_trip(self, trip_id: str, *, limit=None, start=None, end=None):
        return []


def _sample(trip_id: str | None = "T1", minutes: int = 0, **kw) -> GpsSample:
    kw.setdefault("latitude", 35.0)
    kw.setdefault("longitude", 139.0)
    return GpsSample(recorded_at=T0 + timedelta(minutes=minutes), trip_id=trip_id, **kw)


def _pipeline(*trips: Trip, gps=None) -> tuple[GpsIngestionPipeline, InMemoryGpsSampleRepository]:
    trip_repo = InMemoryTripRepository()
    for t in trips:
        trip_repo.add(t)
    gps_repo = gps if gps is not None else InMemoryGpsSampleRepository()
    return GpsIngestionPipeline(gps_repository=gps_repo, trip_repository=trip_repo), gps_repo


def _trip(status: TripStatus = TripStatus.IN_PROGRESS, trip_id: str = "T1") -> Trip:
    return Trip(id=trip_id, vehicle_id="V1", status=status, actual_start=T0)


@pytest.mark.unit
@pytest.mark.parametrize(("lat", "lon"), [(91.0, 0.0), (0.0, 181.0), (-90.5, 10.0)])
def test_invalid_coordinates_are_rejected_and_not_stored(lat: float, lon: float) -> None:
    pipeline, gps = _pipeline(_trip())

    with pytest.raises(ValidationError):
        pipeline.record_sample("T1", _sample(latitude=lat, longitude=lon))
    assert gps.list_for_trip("T1") == []


@pytest.mark.unit
def test_location_update_requires_in_progress_trip() -> None:
    pipeline, _ = _pipeline(_trip(TripStatus.COMPLETED))

    with pytest.raises(ConflictError):
        pipeline.record_sample("T1", _sample())

    # Start/end fixes are exempt from the state check.
    stored = pipeline.record_sample("T1", _sample(event_type=GpsEventType.TRIP_END))
    assert stored is not None


@pytest.mark.unit
def test_unknown_trip_is_not_found() -> None:
    pipeline, _ = _pipeline()
    with pytest.raises(NotFoundError):
        pipeline.record_sample("nope", _sample(trip_id="nope"))


@pytest.mark.unit
def test_vehicle_is_filled_from_trip_and_pre_trip_fixes_are_accepted() -> None:
    pipeline, _ = _pipeline(_trip())

    stored = pipeline.record_sample("T1", _sample())
    assert stored is not None
    assert stored.vehicle_id == "V1"

    pre_trip = pipeline.record_sample(None, _sample(trip_id=None, vehicle_id="V9"))
    assert pre_trip is not None
    assert pre_trip.trip_id is None


@pytest.mark.unit
def test_persistence_failure_is_isolated() -> None:
    pipeline, _ = _pipeline(_trip(), gps=FailingGpsRepository())
    assert pipeline.record_sample("T1", _sample()) is None


@pytest.mark.unit
def test_batch_reports_partial_counts() -> None:
    pipeline, gps = _pipeline(_trip())

    result = pipeline.record_batch(
        [
            _sample(minutes=0),
            _sample(minutes=1),
            _sample(minutes=2),
            _sample(minutes=3, latitude=95.0),
            _sample(trip_id="unknown", minutes=4),
        ]
    )

    assert result == BatchResult(uploaded=3, total=5, failed=2)
    assert len(gps.list_for_trip("T1")) == 3


@pytest.mark.unit
def test_empty_batch() -> None:
    pipeline, _ = _pipeline()
    assert pipeline.record_batch([]) == BatchResult(uploaded=0, total=0, failed=0)


@pytest.mark.unit
def test_history_is_ascending_and_limit_keeps_latest() -> None:
    pipeline, _ = _pipeline(_trip())
    for minutes in (5, 1, 3, 2, 4):
        pipeline.record_sample("T1", _sample(minutes=minutes))

    history = pipeline.history("T1")
    assert [s.recorded_at for s in history] == sorted(s.recorded_at for s in history)
    assert len(history) == 5

    latest = pipeline.history("T1", limit=2)
    assert [s.recorded_at for s in latest] == [
        T0 + timedelta(minutes=4),
        T0 + timedelta(minutes=5),
    ]

    window = pipeline.history(
        "T1", start=T0 + timedelta(minutes=2), end=T0 + timedelta(minutes=3)
    )
    assert len(window) == 2


@pytest.mark.unit
def test_history_of_unknown_trip() -> None:
    pipeline, _ = _pipeline()
    with pytest.raises(NotFoundError):
        pipeline.history("missing")


@pytest.mark.unit
def test_timestamp_without_timezone_is_stored_as_utc() -> None:
    pipeline, gps = _pipeline(_trip())

    stored = pipeline.record_sample(
        "T1", GpsSample(latitude=35.0, longitude=139.0, recorded_at=datetime(2025, 10, 1, 8, 30))
    )
    pipeline.record_sample("T1", _sample(minutes=10))

    assert stored is not None
    assert stored.recorded_at == T0 + timedelta(minutes=30)
    assert [s.recorded_at.minute for s in pipeline.history("T1")] == [10, 30]


@pytest.mark.unit
def test_history_window_accepts_naive_bounds() -> None:
    pipeline, _ = _pipeline(_trip())
    for minutes in (0, 10, 20):
        pipeline.record_sample("T1", _sample(minutes=minutes))

    window = pipeline.history(
        "T1", start=datetime(2025, 10, 1, 8, 5), end=datetime(2025, 10, 1, 8, 15)
    )
    assert [s.recorded_at for s in window] == [T0 + timedelta(minutes=10)]

    with pytest.raises(ValidationError):
        pipeline.history("T1", start=T0 + timedelta(hours=1), end=T0)


@pytest.mark.unit
def test_latest_position_per_vehicle() -> None:
    pipeline, _ = _pipeline(_trip())
    pipeline.record_sample("T1", _sample(minutes=20, latitude=35.2))
    pipeline.record_sample("T1", _sample(minutes=5, latitude=35.05))
    # A fix reported before any trip still counts for its vehicle.
    pipeline.record_sample(None, _sample(trip_id=None, minutes=30, vehicle_id="V9"))

    latest = pipeline.latest_position("V1")
    assert latest is not None and latest.latitude == 35.2
    assert pipeline.latest_position("V404") is None

    fleet = pipeline.fleet_positions()
    assert [(s.vehicle_id, s.recorded_at.minute) for s in fleet] == [("V9", 30), ("V1", 20)]
