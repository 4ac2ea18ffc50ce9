from __future__ import annotations

import os
from dataclasses import dataclass

from haulops.adapters.aws import DynamoDBClient, dynamodb_client
from haulops.adapters.persistence.dynamodb_items import get_ts
from haulops.app.ports.output import IActivityRepository
from haulops.domain.models import ActivityRecord, ActivityType


@dataclass(slots=True)
class DynamoDbActivityRepository(IActivityRepository):
    """Read-only view of loading/unloading records, keyed by (trip_id, id).

    Env vars:
      - DDB_ACTIVITIES_TABLE (default: haulops-activities)
    """

    table_name: str | None = None
    client: DynamoDBClient | None = None

    def _table(self) -> str:
        return (
            self.table_name or os.getenv("DDB_ACTIVITIES_TABLE") or "haulops-activities"
        )

    def _ddb(self) -> DynamoDBClient:
        if self.client is None:
            self.client = dynamodb_client()
        return self.client

    def list_for_trip(self, trip_id: str) -> list[ActivityRecord]:
        paginator = self._ddb().get_paginator("query")
        out: list[ActivityRecord] = []
        for page in paginator.paginate(
            TableName=self._table(),
            KeyConditionExpression="trip_id = :t",
            ExpressionAttributeValues={":t": {"S": trip_id}},
        ):
            for item in page.get("Items", []):
                start_time = get_ts(item, "start_time")
                if start_time is None:
                    continue
                out.append(
                    ActivityRecord(
                        trip_id=item["trip_id"]["S"],
                        location_id=item["location_id"]["S"],
                        item_id=item["item_id"]["S"],
                        quantity=float(item["quantity"]["N"]),
                        activity_type=ActivityType(item["activity_type"]["S"]),
                        start_time=start_time,
                        end_time=get_ts(item, "end_time"),
                    )
                )
        return out
