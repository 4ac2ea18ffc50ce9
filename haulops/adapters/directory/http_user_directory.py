from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass, field
from urllib.parse import quote

import httpx

from haulops.app.ports.output import IUserLookup
from haulops.domain.models import Driver


@dataclass(slots=True)
class HttpUserDirectory(IUserLookup):
    """Looks drivers up in the user directory service over HTTP.

    `GET {base_url}/users/{driver_id}` is expected to return
    `{"id": ..., "name": ...}`, or 404 for an unknown user.

    Env vars:
      - USER_DIRECTORY_URL: base URL of the user directory
      - USER_DIRECTORY_HEADERS: optional headers, as 'Key:Value;Key2:Value2'
      - USER_DIRECTORY_TIMEOUT_S: request timeout (default 5)
      - USER_DIRECTORY_CACHE_TTL_S: in-process cache TTL seconds (default 60)

    Notes:
      - Only found drivers are cached; misses always go to the service.
    """

    base_url: str | None = None
    headers_raw: str | None = None
    timeout_s: float = 5.0
    cache_ttl_s: float = 60.0
    transport: httpx.BaseTransport | None = None

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _cache: dict[str, tuple[float, Driver]] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.base_url is None:
            self.base_url = os.getenv("USER_DIRECTORY_URL")
        if self.headers_raw is None:
            self.headers_raw = os.getenv("USER_DIRECTORY_HEADERS")
        if os.getenv("USER_DIRECTORY_TIMEOUT_S"):
            self.timeout_s = float(os.environ["USER_DIRECTORY_TIMEOUT_S"])
        if os.getenv("USER_DIRECTORY_CACHE_TTL_S"):
            self.cache_ttl_s = float(os.environ["USER_DIRECTORY_CACHE_TTL_S"])

    def _headers(self) -> dict[str, str]:
        raw = (self.headers_raw or "").strip()
        headers: dict[str, str] = {"Accept": "application/json"}
        for part in raw.split(";"):
            if ":" not in part:
                continue
            k, v = part.split(":", 1)
            if k.strip():
                headers[k.strip()] = v.strip()
        return headers

    def get(self, driver_id: str) -> Driver | None:
        if not self.base_url:
            raise RuntimeError("User directory not configured")

        with self._lock:
            cached = self._cache.get(driver_id)
            if cached and (time.monotonic() - cached[0]) < self.cache_ttl_s:
                return cached[1]

        # Ids are opaque and may contain reserved characters.
        url = f"{self.base_url.rstrip('/')}/users/{quote(driver_id, safe='')}"
        with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
            resp = client.get(url, headers=self._headers())
        if resp.status_code == 404:
            return None
        resp.raise_for_status()

        body = resp.json()
        driver = Driver(
            id=str(body.get("id") or driver_id),
            name=str(body.get("name") or ""),
        )
        with self._lock:
            self._cache[driver_id] = (time.monotonic(), driver)
        return driver
