from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from haulops.domain.timeutils import ensure_utc

# Fixed-width UTC timestamps keep lexical order equal to time order, which the
# GPS sort key relies on.
_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_ts(dt: datetime) -> str:
    return ensure_utc(dt).strftime(_TS_FORMAT)


def parse_ts(raw: str) -> datetime:
    return datetime.strptime(raw, _TS_FORMAT).replace(tzinfo=timezone.utc)


def put_s(item: dict[str, Any], name: str, value: str | None) -> None:
    if value is not None:
        item[name] = {"S": value}


def put_n(item: dict[str, Any], name: str, value: float | None) -> None:
    if value is not None:
        item[name] = {"N": repr(float(value))}


def put_ts(item: dict[str, Any], name: str, value: datetime | None) -> None:
    if value is not None:
        item[name] = {"S": format_ts(value)}


def get_s(item: Mapping[str, Any], name: str) -> str | None:
    return item.get(name, {}).get("S")


def get_n(item: Mapping[str, Any], name: str) -> float | None:
    raw = item.get(name, {}).get("N")
    return float(raw) if raw is not None else None


def get_ts(item: Mapping[str, Any], name: str) -> datetime | None:
    raw = get_s(item, name)
    return parse_ts(raw) if raw else None
