from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from botocore.exceptions import ClientError

from haulops.adapters.aws import DynamoDBClient, dynamodb_client, is_conditional_check_failure
from haulops.adapters.persistence.dynamodb_items import (
    get_n,
    get_s,
    get_ts,
    put_n,
    put_s,
    put_ts,
)
from haulops.app.ports.output import ITripRepository
from haulops.domain.models import Trip, TripStatus


def trip_to_item(trip: Trip) -> dict[str, Any]:
    item: dict[str, Any] = {
        "id": {"S": trip.id},
        "vehicle_id": {"S": trip.vehicle_id},
        "status": {"S": trip.status.value},
    }
    put_s(item, "driver_id", trip.driver_id)
    put_s(item, "operation_number", trip.operation_number)
    put_ts(item, "planned_start", trip.planned_start)
    put_ts(item, "planned_end", trip.planned_end)
    put_ts(item, "actual_start", trip.actual_start)
    put_ts(item, "actual_end", trip.actual_end)
    put_n(item, "total_distance_km", trip.total_distance_km)
    put_n(item, "duration_s", trip.duration_s)
    put_n(item, "fuel_consumed_liters", trip.fuel_consumed_liters)
    put_s(item, "notes", trip.notes)
    put_ts(item, "created_at", trip.created_at)
    put_ts(item, "updated_at", trip.updated_at)
    return item


def item_to_trip(item: Mapping[str, Any]) -> Trip:
    return Trip(
        id=item["id"]["S"],
        vehicle_id=item["vehicle_id"]["S"],
        status=TripStatus(item["status"]["S"]),
        driver_id=get_s(item, "driver_id"),
        operation_number=get_s(item, "operation_number"),
        planned_start=get_ts(item, "planned_start"),
        planned_end=get_ts(item, "planned_end"),
        actual_start=get_ts(item, "actual_start"),
        actual_end=get_ts(item, "actual_end"),
        total_distance_km=get_n(item, "total_distance_km"),
        duration_s=get_n(item, "duration_s"),
        fuel_consumed_liters=get_n(item, "fuel_consumed_liters"),
        notes=get_s(item, "notes"),
        created_at=get_ts(item, "created_at"),
        updated_at=get_ts(item, "updated_at"),
    )


@dataclass(slots=True)
class DynamoDbTripRepository(ITripRepository):
    """Trips (operations) keyed by `id`.

    Env vars:
      - DDB_TRIPS_TABLE (default: haulops-trips)
      - ENDPOINT_URL (preferred for LocalStack)
      - AWS_REGION
    """

    table_name: str | None = None
    client: DynamoDBClient | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("DDB_TRIPS_TABLE") or "haulops-trips"

    def _ddb(self) -> DynamoDBClient:
        if self.client is None:
            self.client = dynamodb_client()
        return self.client

    def get(self, trip_id: str) -> Trip | None:
        resp = self._ddb().get_item(
            TableName=self._table(),
            Key={"id": {"S": trip_id}},
            ConsistentRead=True,
        )
        item = resp.get("Item")
        if not item:
            return None
        return item_to_trip(item)

    def add(self, trip: Trip) -> None:
        self._ddb().put_item(
            TableName=self._table(),
            Item=trip_to_item(trip),
            ConditionExpression="attribute_not_exists(id)",
        )

    def save_if_status(self, trip: Trip, *, expected_status: TripStatus) -> bool:
        try:
            self._ddb().put_item(
                TableName=self._table(),
                Item=trip_to_item(trip),
                ConditionExpression="#s = :expected",
                ExpressionAttributeNames={"#s": "status"},
                ExpressionAttributeValues={":expected": {"S": expected_status.value}},
            )
        except ClientError as exc:
            if is_conditional_check_failure(exc):
                return False
            raise
        return True

    def find_in_progress_by_driver(self, driver_id: str) -> Trip | None:
        # Low volume of open trips; a filtered scan avoids a driver index.
        paginator = self._ddb().get_paginator("scan")
        latest: Trip | None = None
        for page in paginator.paginate(
            TableName=self._table(),
            FilterExpression="driver_id = :d AND #s = :s",
            ExpressionAttributeNames={"#s": "status"},
            ExpressionAttributeValues={
                ":d": {"S": driver_id},
                ":s": {"S": TripStatus.IN_PROGRESS.value},
            },
            ConsistentRead=True,
        ):
            for item in page.get("Items", []):
                trip = item_to_trip(item)
                if latest is None or (
                    trip.actual_start is not None
                    and (latest.actual_start is None or trip.actual_start > latest.actual_start)
                ):
                    latest = trip
        return latest
