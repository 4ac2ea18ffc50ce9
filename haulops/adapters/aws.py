from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Sequence

import boto3
from botocore.client import BaseClient
from botocore.exceptions import ClientError

from haulops.config import env_bool

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBClient
else:
    DynamoDBClient = BaseClient  # type: ignore[misc,assignment]

logger = logging.getLogger(__name__)

DEFAULT_LOCALSTACK_URL = "http://localhost:4566"


@dataclass(frozen=True, slots=True)
class AwsRuntimeConfig:
    region: str
    endpoint_url: str | None = None

    @staticmethod
    def from_env() -> "AwsRuntimeConfig":
        """Region and endpoint for boto3.

        ENDPOINT_URL wins; otherwise USE_LOCALSTACK points at
        LOCALSTACK_ENDPOINT_URL; otherwise real AWS.
        """

        endpoint_url = (os.getenv("ENDPOINT_URL") or "").strip() or None
        if endpoint_url is None and env_bool("USE_LOCALSTACK"):
            endpoint_url = os.getenv("LOCALSTACK_ENDPOINT_URL", DEFAULT_LOCALSTACK_URL)

        return AwsRuntimeConfig(
            region=os.getenv("AWS_REGION", "eu-west-1"),
            endpoint_url=endpoint_url,
        )


@lru_cache(maxsize=8)
def _client_for(cfg: AwsRuntimeConfig) -> DynamoDBClient:
    # Sessions are not thread-safe, clients are; build once per config.
    session = boto3.session.Session(region_name=cfg.region)
    return session.client("dynamodb", endpoint_url=cfg.endpoint_url)


def dynamodb_client(cfg: AwsRuntimeConfig | None = None) -> DynamoDBClient:
    return _client_for(cfg or AwsRuntimeConfig.from_env())


def is_conditional_check_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


def ensure_table(
    client: DynamoDBClient, table_name: str, keys: Sequence[tuple[str, str]]
) -> None:
    """Create an on-demand table with string keys unless it already exists.

    `keys` is [(attribute, "HASH"), (attribute, "RANGE")].
    """

    if table_name in client.list_tables().get("TableNames", []):
        return

    logger.info("Creating DynamoDB table", extra={"table": table_name})
    client.create_table(
        TableName=table_name,
        BillingMode="PAY_PER_REQUEST",
        AttributeDefinitions=[{"AttributeName": k, "AttributeType": "S"} for k, _ in keys],
        KeySchema=[{"AttributeName": k, "KeyType": t} for k, t in keys],
    )
    client.get_waiter("table_exists").wait(TableName=table_name)
