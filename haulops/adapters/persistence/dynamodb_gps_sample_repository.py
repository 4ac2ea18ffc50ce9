from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from botocore.exceptions import ClientError

from haulops.adapters.aws import DynamoDBClient, dynamodb_client, is_conditional_check_failure
from haulops.adapters.persistence.dynamodb_items import (
    format_ts,
    get_n,
    get_s,
    parse_ts,
    put_n,
    put_s,
)
from haulops.app.ports.output import IGpsSampleRepository
from haulops.domain.models import GpsEventType, GpsSample

# Sorts after any "<timestamp>#<id>" sharing the same timestamp prefix.
_KEY_HIGH = "#\uffff"

# One row per vehicle holding its newest sample.
_LATEST_PREFIX = "latest:"
_LATEST_SK = "latest"


def partition_for(sample: GpsSample) -> str:
    if sample.trip_id:
        return f"trip:{sample.trip_id}"
    if sample.vehicle_id:
        return f"vehicle:{sample.vehicle_id}"
    return "unassigned"


def sample_to_item(sample: GpsSample) -> dict[str, Any]:
    recorded = format_ts(sample.recorded_at)
    item: dict[str, Any] = {
        "pk": {"S": partition_for(sample)},
        "sk": {"S": f"{recorded}#{sample.id}"},
        "id": {"S": sample.id},
        "latitude": {"N": repr(float(sample.latitude))},
        "longitude": {"N": repr(float(sample.longitude))},
        "recorded_at": {"S": recorded},
        "event_type": {"S": sample.event_type.value},
    }
    put_s(item, "trip_id", sample.trip_id)
    put_s(item, "vehicle_id", sample.vehicle_id)
    put_n(item, "altitude", sample.altitude)
    put_n(item, "speed_kmh", sample.speed_kmh)
    put_n(item, "heading", sample.heading)
    put_n(item, "accuracy_meters", sample.accuracy_meters)
    return item


def item_to_sample(item: Mapping[str, Any]) -> GpsSample:
    return GpsSample(
        id=item["id"]["S"],
        latitude=float(item["latitude"]["N"]),
        longitude=float(item["longitude"]["N"]),
        recorded_at=parse_ts(item["recorded_at"]["S"]),
        event_type=GpsEventType(item["event_type"]["S"]),
        trip_id=get_s(item, "trip_id"),
        vehicle_id=get_s(item, "vehicle_id"),
        altitude=get_n(item, "altitude"),
        speed_kmh=get_n(item, "speed_kmh"),
        heading=get_n(item, "heading"),
        accuracy_meters=get_n(item, "accuracy_meters"),
    )


@dataclass(slots=True)
class DynamoDbGpsSampleRepository(IGpsSampleRepository):
    """Append-only GPS samples.

    Table keys: `pk` (S, "trip:<id>" / "vehicle:<id>" / "unassigned") and
    `sk` (S, "<recorded_at UTC>#<sample id>"). Each vehicle also has a
    "latest:<vehicle id>" row, overwritten only by newer samples.

    Env vars:
      - DDB_GPS_TABLE (default: haulops-gps-samples)
    """

    table_name: str | None = None
    client: DynamoDBClient | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("DDB_GPS_TABLE") or "haulops-gps-samples"

    def _ddb(self) -> DynamoDBClient:
        if self.client is None:
            self.client = dynamodb_client()
        return self.client

    def add(self, sample: GpsSample) -> None:
        item = sample_to_item(sample)
        self._ddb().put_item(TableName=self._table(), Item=item)
        if sample.vehicle_id:
            self._advance_latest(sample.vehicle_id, item)

    def _advance_latest(self, vehicle_id: str, item: dict[str, Any]) -> None:
        latest = {**item, "pk": {"S": _LATEST_PREFIX + vehicle_id}, "sk": {"S": _LATEST_SK}}
        try:
            self._ddb().put_item(
                TableName=self._table(),
                Item=latest,
                # Late-arriving samples must not move the position backwards.
                ConditionExpression="attribute_not_exists(pk) OR recorded_at < :ts",
                ExpressionAttributeValues={":ts": item["recorded_at"]},
            )
        except ClientError as exc:
            if not is_conditional_check_failure(exc):
                raise

    def list_for_trip(
        self,
        trip_id: str,
        *,
        limit: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[GpsSample]:
        key_condition = "pk = :pk"
        values: dict[str, Any] = {":pk": {"S": f"trip:{trip_id}"}}
        if start is not None and end is not None:
            key_condition += " AND sk BETWEEN :lo AND :hi"
            values[":lo"] = {"S": format_ts(start)}
            values[":hi"] = {"S": format_ts(end) + _KEY_HIGH}
        elif start is not None:
            key_condition += " AND sk >= :lo"
            values[":lo"] = {"S": format_ts(start)}
        elif end is not None:
            key_condition += " AND sk <= :hi"
            values[":hi"] = {"S": format_ts(end) + _KEY_HIGH}

        kwargs: dict[str, Any] = {
            "TableName": self._table(),
            "KeyConditionExpression": key_condition,
            "ExpressionAttributeValues": values,
            # Newest first, so a limit keeps the most recent samples.
            "ScanIndexForward": False,
        }

        out: list[GpsSample] = []
        while True:
            if limit is not None:
                kwargs["Limit"] = limit - len(out)
            resp = self._ddb().query(**kwargs)
            out.extend(item_to_sample(i) for i in resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key or (limit is not None and len(out) >= limit):
                break
            kwargs["ExclusiveStartKey"] = last_key
        return out

    def latest_for_vehicle(self, vehicle_id: str) -> GpsSample | None:
        resp = self._ddb().get_item(
            TableName=self._table(),
            Key={"pk": {"S": _LATEST_PREFIX + vehicle_id}, "sk": {"S": _LATEST_SK}},
            ConsistentRead=True,
        )
        item = resp.get("Item")
        return item_to_sample(item) if item else None

    def latest_per_vehicle(self) -> list[GpsSample]:
        paginator = self._ddb().get_paginator("scan")
        pages = paginator.paginate(
            TableName=self._table(),
            FilterExpression="begins_with(pk, :p) AND sk = :sk",
            ExpressionAttributeValues={
                ":p": {"S": _LATEST_PREFIX},
                ":sk": {"S": _LATEST_SK},
            },
        )
        return [item_to_sample(i) for page in pages for i in page.get("Items", [])]
