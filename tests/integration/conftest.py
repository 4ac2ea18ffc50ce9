from __future__ import annotations

import os

import httpx
import pytest


def _dynamodb_ready(endpoint_url: str) -> bool:
    url = endpoint_url.rstrip("/") + "/_localstack/health"
    try:
        resp = httpx.get(url, timeout=1.5)
    except httpx.HTTPError:
        return False
    if resp.status_code != 200:
        return False
    try:
        services = resp.json().get("services", {})
    except ValueError:
        return False
    # Older LocalStack builds omit the per-service map.
    return not services or services.get("dynamodb") in {"available", "running"}


@pytest.fixture(scope="session", autouse=True)
def localstack_env() -> None:
    """Point boto3 at LocalStack unless the caller already configured AWS."""

    os.environ.setdefault("USE_LOCALSTACK", "true")
    os.environ.setdefault("ENDPOINT_URL", "http://localhost:4566")
    os.environ.setdefault("AWS_REGION", "eu-west-1")

    # boto3 refuses to sign requests without credentials, even for LocalStack.
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")


@pytest.fixture(scope="session")
def require_localstack(localstack_env: None) -> str:
    endpoint_url = os.environ["ENDPOINT_URL"]
    if not _dynamodb_ready(endpoint_url):
        msg = f"LocalStack DynamoDB not reachable at {endpoint_url}"

        # CI starts LocalStack, so a missing one there is a real failure.
        if os.getenv("CI") or os.getenv("REQUIRE_LOCALSTACK"):
            pytest.fail(msg, pytrace=False)

        pytest.skip(f"{msg}; skipping integration tests")
    return endpoint_url
