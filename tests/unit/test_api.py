from __future__ import annotations

from dataclasses import dataclass

import httpx
import pytest

from haulops.adapters.persistence import (
    InMemoryGpsSampleRepository,
    InMemoryLocationSearch,
    InMemoryTripRepository,
    InMemoryVehicleRepository,
)
from haulops.config import Settings
from haulops.container import Container, wire_services
from haulops.domain.models import (
    Location,
    LocationFilter,
    LocationType,
    PersistedVehicleStatus,
    Vehicle,
)
from haulops.main import create_app


@dataclass(slots=True)
class ExplodingLocationSearch:
    def search(self, location_filter: LocationFilter) -> tuple[Location, ...]:
        raise RuntimeError("secret connection string leaked")


def _container(locations=None, reveal_errors: bool = False) -> Container:
    vehicles = InMemoryVehicleRepository.with_vehicles(
        [Vehicle(id="V1", status=PersistedVehicleStatus.ACTIVE)]
    )
    return wire_services(
        Settings(reveal_errors=reveal_errors),
        trips=InMemoryTripRepository(),
        vehicles=vehicles,
        gps_samples=InMemoryGpsSampleRepository(),
        locations=locations
        or InMemoryLocationSearch(
            locations=(
                Location(
                    id="pit",
                    name="North pit",
                    location_type=LocationType.PICKUP,
                    latitude=35.001,
                    longitude=139.0,
                ),
                Location(
                    id="dump",
                    name="Dump site",
                    location_type=LocationType.DELIVERY,
                    latitude=35.002,
                    longitude=139.0,
                ),
            )
        ),
    )


def _client(container: Container | None = None) -> httpx.AsyncClient:
    app = create_app(container or _container())
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.unit
@pytest.mark.anyio
async def test_health() -> None:
    async with _client() as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_trip_round_trip_over_http() -> None:
    async with _client() as client:
        started = await client.post(
            "/trips",
            json={"vehicle_id": "V1", "driver_id": "D1", "start_position": {"lat": 35.0, "lon": 139.0}},
        )
        assert started.status_code == 201
        body = started.json()
        assert body["success"] is True
        assert body["error"] is None
        trip_id = body["data"]["id"]
        assert body["data"]["status"] == "IN_PROGRESS"

        current = await client.get("/trips/current", params={"driver_id": "D1"})
        assert current.json()["data"]["id"] == trip_id

        sample = await client.post(
            "/gps/samples",
            json={"trip_id": trip_id, "latitude": 35.01, "longitude": 139.0, "speed_kmh": 30.0},
        )
        assert sample.status_code == 201
        assert sample.json()["data"]["vehicle_id"] == "V1"

        ended = await client.post(f"/trips/{trip_id}/end", json={"fuel_consumed_liters": 8.5})
        assert ended.status_code == 200
        assert ended.json()["data"]["status"] == "COMPLETED"
        assert ended.json()["data"]["total_distance_km"] > 1.0

        stats = await client.get(f"/trips/{trip_id}/statistics")
        assert stats.json()["data"]["gps_point_count"] == 2
        assert stats.json()["data"]["max_speed_kmh"] == 30.0

        history = await client.get(
            f"/trips/{trip_id}/gps", params={"include_analytics": "true"}
        )
        data = history.json()["data"]
        assert [s["event_type"] for s in data["samples"]] == ["TRIP_START", "LOCATION_UPDATE"]
        assert data["statistics"]["gps_point_count"] == 2

        again = await client.post(f"/trips/{trip_id}/end")
        assert again.status_code == 409
        assert again.json()["success"] is False
        assert again.json()["error"] == "CONFLICT"


@pytest.mark.unit
@pytest.mark.anyio
async def test_error_envelopes() -> None:
    async with _client() as client:
        missing_vehicle = await client.post("/trips", json={"vehicle_id": "V404"})
        bad_body = await client.post("/trips", json={})
        bad_coords = await client.post(
            "/gps/samples", json={"latitude": 123.0, "longitude": 0.0}
        )
        missing_trip = await client.get("/trips/nope")

    assert missing_vehicle.status_code == 404
    assert missing_vehicle.json()["error"] == "NOT_FOUND"
    assert bad_body.status_code == 400
    assert bad_body.json()["error"] == "VALIDATION_ERROR"
    assert bad_coords.status_code == 400
    assert bad_coords.json()["success"] is False
    assert missing_trip.status_code == 404


@pytest.mark.unit
@pytest.mark.anyio
async def test_gps_batch_reports_counts() -> None:
    async with _client() as client:
        trip_id = (await client.post("/trips", json={"vehicle_id": "V1"})).json()["data"]["id"]
        resp = await client.post(
            "/gps/batch",
            json={
                "samples": [
                    {"trip_id": trip_id, "latitude": 35.0, "longitude": 139.0},
                    {"trip_id": trip_id, "latitude": 35.1, "longitude": 139.0},
                    {"trip_id": trip_id, "latitude": 99.0, "longitude": 139.0},
                ]
            },
        )

    assert resp.status_code == 200
    assert resp.json()["data"] == {"uploaded": 2, "total": 3, "failed": 1}


@pytest.mark.unit
@pytest.mark.anyio
async def test_cancel_trip() -> None:
    async with _client() as client:
        trip_id = (await client.post("/trips", json={"vehicle_id": "V1"})).json()["data"]["id"]
        resp = await client.post(f"/trips/{trip_id}/cancel", json={"reason": "weather"})
        restart = await client.post("/trips", json={"vehicle_id": "V1"})

    assert resp.json()["data"]["status"] == "CANCELLED"
    assert restart.status_code == 201


@pytest.mark.unit
@pytest.mark.anyio
async def test_nearby_locations() -> None:
    async with _client() as client:
        resp = await client.post(
            "/proximity/nearby",
            json={"position": {"lat": 35.0, "lon": 139.0}, "radius_meters": 1000, "phase": "TO_UNLOADING"},
        )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [d["id"] for d in data] == ["dump"]
    assert data[0]["distance_m"] == pytest.approx(222.39, rel=1e-3)


@pytest.mark.unit
@pytest.mark.anyio
async def test_unexpected_errors_hide_internals() -> None:
    async with _client(_container(locations=ExplodingLocationSearch())) as client:
        resp = await client.post(
            "/proximity/nearby",
            json={"position": {"lat": 35.0, "lon": 139.0}, "radius_meters": 100},
        )

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert "secret" not in body["message"]


@pytest.mark.unit
@pytest.mark.anyio
async def test_sample_without_timezone_does_not_block_trip_end() -> None:
    container = _container()
    async with _client(container) as client:
        started = await client.post(
            "/trips", json={"vehicle_id": "V1", "start_position": {"lat": 35.0, "lon": 139.0}}
        )
        trip_id = started.json()["data"]["id"]

        sample = await client.post(
            "/gps/samples",
            json={
                "trip_id": trip_id,
                "latitude": 35.01,
                "longitude": 139.0,
                "recorded_at": "2030-01-01T10:00:00",
            },
        )
        assert sample.status_code == 201
        assert sample.json()["data"]["recorded_at"].startswith("2030-01-01T10:00:00")

        window = await client.get(
            f"/trips/{trip_id}/gps", params={"start": "2029-12-31T00:00:00"}
        )
        assert window.status_code == 200
        assert len(window.json()["data"]["samples"]) == 1

        stats = await client.get(f"/trips/{trip_id}/statistics")
        assert stats.status_code == 200

        ended = await client.post(f"/trips/{trip_id}/end")
        assert ended.status_code == 200
        assert ended.json()["data"]["status"] == "COMPLETED"

    assert container.coordinator.current_status("V1").value == "AVAILABLE"


@pytest.mark.unit
@pytest.mark.anyio
async def test_vehicle_positions_and_speed_violations() -> None:
    async with _client() as client:
        started = await client.post(
            "/trips", json={"vehicle_id": "V1", "start_position": {"lat": 35.0, "lon": 139.0}}
        )
        trip_id = started.json()["data"]["id"]
        for minute, speed in ((1, 35.0), (2, 82.0), (3, 64.0)):
            await client.post(
                "/gps/samples",
                json={
                    "trip_id": trip_id,
                    "latitude": 35.0 + minute * 0.001,
                    "longitude": 139.0,
                    "speed_kmh": speed,
                    "recorded_at": f"2030-01-01T10:0{minute}:00Z",
                },
            )

        position = await client.get("/vehicles/V1/position")
        assert position.status_code == 200
        assert position.json()["data"]["speed_kmh"] == 64.0

        missing = await client.get("/vehicles/V404/position")
        assert missing.status_code == 404

        fleet = await client.get("/vehicles/positions")
        assert [p["vehicle_id"] for p in fleet.json()["data"]] == ["V1"]

        violations = await client.get(
            f"/trips/{trip_id}/speed-violations", params={"threshold_kmh": 60}
        )
        assert violations.status_code == 200
        data = violations.json()["data"]
        assert [(v["sample"]["speed_kmh"], v["severity"]) for v in data] == [
            (82.0, "HIGH"),
            (64.0, "LOW"),
        ]

        bad = await client.get(
            f"/trips/{trip_id}/speed-violations", params={"threshold_kmh": 0}
        )
        assert bad.status_code == 400
