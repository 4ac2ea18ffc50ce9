from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest
from botocore.exceptions import ClientError

from haulops.adapters.directory.http_user_directory import HttpUserDirectory
from haulops.adapters.persistence import CsvLocationRepository, load_vehicles_csv
from haulops.adapters.persistence.dynamodb_gps_sample_repository import (
    DynamoDbGpsSampleRepository,
    item_to_sample,
    sample_to_item,
)
from haulops.adapters.persistence.dynamodb_items import format_ts, parse_ts
from haulops.adapters.persistence.dynamodb_trip_repository import item_to_trip, trip_to_item
from haulops.config import Settings
from haulops.container import build_container
from haulops.domain.models import (
    GpsEventType,
    GpsSample,
    LocationFilter,
    LocationType,
    PersistedVehicleStatus,
    Trip,
    TripStatus,
)


@pytest.mark.unit
def test_csv_location_repository_reads_and_filters(tmp_path: Path) -> None:
    csv_path = tmp_path / "locations.csv"
    csv_path.write_text(
        "id,name,location_type,latitude,longitude,is_active\n"
        "L1,North pit,pickup,35.001,139.0,true\n"
        "L2,Dump site,DELIVERY,35.002,139.0,1\n"
        "L3,Old yard,BOTH,35.003,139.0,false\n"
        "L4,Untagged,PICKUP,,,true\n"
        "L5,Broken,PICKUP,123.0,139.0,true\n"
        ",no id,PICKUP,1,1,true\n"
        "L6,Mystery,WAREHOUSE,35.0,139.0,true\n",
        encoding="utf-8",
    )
    repo = CsvLocationRepository(path=csv_path)

    everything = repo.search(LocationFilter(active_only=False))
    assert [loc.id for loc in everything] == ["L1", "L2", "L3", "L4", "L5", "L6"]

    by_id = {loc.id: loc for loc in everything}
    assert by_id["L1"].location_type is LocationType.PICKUP
    assert by_id["L3"].is_active is False
    assert by_id["L4"].point is None
    assert by_id["L5"].point is None
    assert by_id["L6"].location_type is LocationType.OTHER

    pickups = repo.search(LocationFilter(location_types=frozenset({LocationType.PICKUP})))
    assert [loc.id for loc in pickups] == ["L1", "L4", "L5"]


@pytest.mark.unit
def test_csv_location_repository_without_path_is_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LOCATIONS_CSV_PATH", raising=False)
    assert CsvLocationRepository().search(LocationFilter()) == ()


@pytest.mark.unit
def test_http_user_directory() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path == "/users/D1":
            return httpx.Response(200, json={"id": "D1", "name": "Sato"})
        return httpx.Response(404, json={"message": "not found"})

    directory = HttpUserDirectory(
        base_url="http://users.test/", transport=httpx.MockTransport(handler)
    )

    driver = directory.get("D1")
    assert driver is not None and driver.name == "Sato"
    assert directory.get("D1") == driver
    assert directory.get("D404") is None
    # Second D1 lookup is served from cache.
    assert calls == ["/users/D1", "/users/D404"]


@pytest.mark.unit
def test_http_user_directory_propagates_server_errors() -> None:
    directory = HttpUserDirectory(
        base_url="http://users.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    with pytest.raises(httpx.HTTPStatusError):
        directory.get("D1")


@pytest.mark.unit
def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HAULOPS_STORAGE", "DynamoDB")
    monkeypatch.setenv("DDB_TRIPS_TABLE", "trips-test")
    monkeypatch.setenv("STATS_MAX_SAMPLES", "250")
    monkeypatch.setenv("STATS_TIME_BUDGET_S", "0.5")
    monkeypatch.setenv("HAULOPS_REVEAL_ERRORS", "yes")
    monkeypatch.delenv("NEARBY_DEFAULT_LIMIT", raising=False)

    settings = Settings.from_env()

    assert settings.storage == "dynamodb"
    assert settings.trips_table == "trips-test"
    assert settings.stats_max_samples == 250
    assert settings.stats_time_budget_s == 0.5
    assert settings.nearby_default_limit == 5
    assert settings.reveal_errors is True

    monkeypatch.setenv("HAULOPS_STORAGE", "postgres")
    with pytest.raises(ValueError):
        Settings.from_env()


@pytest.mark.unit
def test_dynamodb_timestamps_sort_lexically() -> None:
    base = datetime(2025, 10, 1, 23, 59, 59, 999_000, tzinfo=timezone.utc)
    later = base + timedelta(milliseconds=2)
    jst = timezone(timedelta(hours=9))

    assert format_ts(base) < format_ts(later)
    assert parse_ts(format_ts(later)) == later
    # Offsets are normalised to UTC before formatting.
    assert format_ts(later.astimezone(jst)) == format_ts(later)


@pytest.mark.unit
def test_dynamodb_item_mapping_keeps_optional_fields() -> None:
    trip = Trip(
        id="T1",
        vehicle_id="V1",
        status=TripStatus.COMPLETED,
        driver_id="D1",
        actual_start=datetime(2025, 10, 1, 8, tzinfo=timezone.utc),
        actual_end=datetime(2025, 10, 1, 9, tzinfo=timezone.utc),
        total_distance_km=12.5,
        duration_s=3600.0,
    )
    item = trip_to_item(trip)
    assert "notes" not in item
    assert item_to_trip(item) == trip

    sample = GpsSample(
        latitude=35.0,
        longitude=139.0,
        recorded_at=datetime(2025, 10, 1, 8, 30, tzinfo=timezone.utc),
        event_type=GpsEventType.TRIP_START,
        trip_id="T1",
        speed_kmh=0.0,
    )
    sample_item = sample_to_item(sample)
    assert sample_item["pk"] == {"S": "trip:T1"}
    assert sample_item["sk"]["S"].endswith(f"#{sample.id}")
    assert item_to_sample(sample_item) == sample


@pytest.mark.unit
def test_http_user_directory_encodes_driver_id() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path.decode())
        return httpx.Response(404)

    directory = HttpUserDirectory(
        base_url="http://users.test", transport=httpx.MockTransport(handler)
    )

    assert directory.get("../admin?x=1") is None
    assert seen == ["/users/..%2Fadmin%3Fx%3D1"]


@pytest.mark.unit
def test_vehicle_csv_seeds_memory_storage(tmp_path: Path) -> None:
    csv_path = tmp_path / "vehicles.csv"
    csv_path.write_text(
        "id,status,plate_number,model\n"
        "V1,ACTIVE,品川 100 あ 12-34,FV-70\n"
        "V2,maintenance,,\n"
        "V3,,,\n"
        "V4,SCRAPPED,,\n"
        ",ACTIVE,,\n",
        encoding="utf-8",
    )

    vehicles = {v.id: v for v in load_vehicles_csv(csv_path)}
    assert sorted(vehicles) == ["V1", "V2", "V3"]
    assert vehicles["V1"].model == "FV-70"
    assert vehicles["V2"].status is PersistedVehicleStatus.MAINTENANCE
    assert vehicles["V2"].plate_number is None
    assert vehicles["V3"].status is PersistedVehicleStatus.ACTIVE

    container = build_container(Settings(vehicles_csv_path=str(csv_path)))
    assert container.coordinator.current_status("V1").value == "AVAILABLE"


class FakeDynamoClient:
    """Just enough of put_item/get_item for the latest-position row."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], dict] = {}

    def put_item(self, *, TableName, Item, ConditionExpression=None, ExpressionAttributeValues=None):
        key = (Item["pk"]["S"], Item["sk"]["S"])
        current = self.items.get(key)
        if ConditionExpression and current is not None:
            if not current["recorded_at"]["S"] < ExpressionAttributeValues[":ts"]["S"]:
                raise ClientError(
                    {"Error": {"Code": "ConditionalCheckFailedException", "Message": "stale"}},
                    "PutItem",
                )
        self.items[key] = Item
        return {}

    def get_item(self, *, TableName, Key, ConsistentRead=False):
        item = self.items.get((Key["pk"]["S"], Key["sk"]["S"]))
        return {"Item": item} if item else {}


@pytest.mark.unit
def test_dynamodb_latest_position_ignores_late_samples() -> None:
    repo = DynamoDbGpsSampleRepository(table_name="gps", client=FakeDynamoClient())
    t = datetime(2025, 10, 1, 8, tzinfo=timezone.utc)

    repo.add(GpsSample(latitude=35.2, longitude=139.0, recorded_at=t, trip_id="T1", vehicle_id="V1"))
    # Delivered later but recorded earlier.
    repo.add(
        GpsSample(
            latitude=35.1,
            longitude=139.0,
            recorded_at=t - timedelta(minutes=5),
            trip_id="T1",
            vehicle_id="V1",
        )
    )

    latest = repo.latest_for_vehicle("V1")
    assert latest is not None and latest.latitude == 35.2
    assert repo.latest_for_vehicle("V2") is None
