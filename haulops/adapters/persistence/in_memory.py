from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from haulops.app.ports.output import (
    IActivityRepository,
    IGpsSampleRepository,
    ILocationSearch,
    ITripRepository,
    IUserLookup,
    IVehicleRepository,
)
from haulops.domain.models import (
    ActivityRecord,
    Driver,
    GpsSample,
    Location,
    LocationFilter,
    PersistedVehicleStatus,
    Trip,
    TripStatus,
    Vehicle,
)
from haulops.domain.timeutils import ensure_utc_or_none

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(slots=True)
class InMemoryTripRepository(ITripRepository):
    _trips: dict[str, Trip] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, trip_id: str) -> Trip | None:
        with self._lock:
            return self._trips.get(trip_id)

    def add(self, trip: Trip) -> None:
        with self._lock:
            if trip.id in self._trips:
                raise KeyError(f"Trip already exists: {trip.id}")
            self._trips[trip.id] = trip

    def save_if_status(self, trip: Trip, *, expected_status: TripStatus) -> bool:
        with self._lock:
            current = self._trips.get(trip.id)
            if current is None or current.status is not expected_status:
                return False
            self._trips[trip.id] = trip
            return True

    def find_in_progress_by_driver(self, driver_id: str) -> Trip | None:
        with self._lock:
            candidates = [
                t
                for t in self._trips.values()
                if t.driver_id == driver_id and t.status is TripStatus.IN_PROGRESS
            ]
        if not candidates:
            return None
        return max(candidates, key=lambda t: t.actual_start or _EPOCH)


@dataclass(slots=True)
class InMemoryVehicleRepository(IVehicleRepository):
    _vehicles: dict[str, Vehicle] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def with_vehicles(cls, vehicles: Iterable[Vehicle]) -> InMemoryVehicleRepository:
        return cls(_vehicles={v.id: v for v in vehicles})

    def put(self, vehicle: Vehicle) -> None:
        with self._lock:
            self._vehicles[vehicle.id] = vehicle

    def get(self, vehicle_id: str) -> Vehicle | None:
        with self._lock:
            return self._vehicles.get(vehicle_id)

    def compare_and_set_status(
        self,
        vehicle_id: str,
        *,
        expected: PersistedVehicleStatus,
        new: PersistedVehicleStatus,
    ) -> bool:
        with self._lock:
            vehicle = self._vehicles.get(vehicle_id)
            if vehicle is None or vehicle.status is not expected:
                return False
            self._vehicles[vehicle_id] = Vehicle(
                id=vehicle.id,
                status=new,
                plate_number=vehicle.plate_number,
                model=vehicle.model,
            )
            return True


@dataclass(slots=True)
class InMemoryGpsSampleRepository(IGpsSampleRepository):
    _samples: list[GpsSample] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, sample: GpsSample) -> None:
        with self._lock:
            self._samples.append(sample)

    def list_for_trip(
        self,
        trip_id: str,
        *,
        limit: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[GpsSample]:
        with self._lock:
            rows = [s for s in self._samples if s.trip_id == trip_id]

        start, end = ensure_utc_or_none(start), ensure_utc_or_none(end)
        if start is not None:
            rows = [s for s in rows if s.recorded_at >= start]
        if end is not None:
            rows = [s for s in rows if s.recorded_at <= end]

        rows.sort(key=lambda s: s.recorded_at, reverse=True)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def latest_for_vehicle(self, vehicle_id: str) -> GpsSample | None:
        with self._lock:
            rows = [s for s in self._samples if s.vehicle_id == vehicle_id]
        return max(rows, key=lambda s: s.recorded_at, default=None)

    def latest_per_vehicle(self) -> list[GpsSample]:
        latest: dict[str, GpsSample] = {}
        with self._lock:
            for s in self._samples:
                if s.vehicle_id is None:
                    continue
                current = latest.get(s.vehicle_id)
                if current is None or s.recorded_at > current.recorded_at:
                    latest[s.vehicle_id] = s
        return list(latest.values())


@dataclass(slots=True)
class InMemoryLocationSearch(ILocationSearch):
    locations: tuple[Location, ...] = ()

    def search(self, location_filter: LocationFilter) -> tuple[Location, ...]:
        types = location_filter.location_types
        return tuple(
            loc
            for loc in self.locations
            if (not location_filter.active_only or loc.is_active)
            and (types is None or loc.location_type in types)
        )


@dataclass(slots=True)
class InMemoryUserLookup(IUserLookup):
    drivers: dict[str, Driver] = field(default_factory=dict)

    def get(self, driver_id: str) -> Driver | None:
        return self.drivers.get(driver_id)


@dataclass(slots=True)
class InMemoryActivityRepository(IActivityRepository):
    records: list[ActivityRecord] = field(default_factory=list)

    def list_for_trip(self, trip_id: str) -> list[ActivityRecord]:
        return [r for r in self.records if r.trip_id == trip_id]
