from __future__ import annotations

import os
from dataclasses import dataclass

from botocore.exceptions import ClientError

from haulops.adapters.aws import DynamoDBClient, dynamodb_client, is_conditional_check_failure
from haulops.adapters.persistence.dynamodb_items import get_s
from haulops.app.ports.output import IVehicleRepository
from haulops.domain.models import PersistedVehicleStatus, Vehicle


@dataclass(slots=True)
class DynamoDbVehicleRepository(IVehicleRepository):
    """Vehicle master records keyed by `id`.

    The status column is only ever changed through a conditional update, so
    two trips can never claim the same vehicle.

    Env vars:
      - DDB_VEHICLES_TABLE (default: haulops-vehicles)
    """

    table_name: str | None = None
    client: DynamoDBClient | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("DDB_VEHICLES_TABLE") or "haulops-vehicles"

    def _ddb(self) -> DynamoDBClient:
        if self.client is None:
            self.client = dynamodb_client()
        return self.client

    def put(self, vehicle: Vehicle) -> None:
        item = {"id": {"S": vehicle.id}, "status": {"S": vehicle.status.value}}
        if vehicle.plate_number:
            item["plate_number"] = {"S": vehicle.plate_number}
        if vehicle.model:
            item["model"] = {"S": vehicle.model}
        self._ddb().put_item(TableName=self._table(), Item=item)

    def get(self, vehicle_id: str) -> Vehicle | None:
        resp = self._ddb().get_item(
            TableName=self._table(),
            Key={"id": {"S": vehicle_id}},
            ConsistentRead=True,
        )
        item = resp.get("Item")
        if not item:
            return None
        return Vehicle(
            id=item["id"]["S"],
            status=PersistedVehicleStatus(item["status"]["S"]),
            plate_number=get_s(item, "plate_number"),
            model=get_s(item, "model"),
        )

    def compare_and_set_status(
        self,
        vehicle_id: str,
        *,
        expected: PersistedVehicleStatus,
        new: PersistedVehicleStatus,
    ) -> bool:
        try:
            self._ddb().update_item(
                TableName=self._table(),
                Key={"id": {"S": vehicle_id}},
                UpdateExpression="SET #s = :new",
                ConditionExpression="#s = :expected",
                ExpressionAttributeNames={"#s": "status"},
                ExpressionAttributeValues={
                    ":new": {"S": new.value},
                    ":expected": {"S": expected.value},
                },
            )
        except ClientError as exc:
            if is_conditional_check_failure(exc):
                return False
            raise
        return True
