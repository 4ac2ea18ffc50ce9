from __future__ import annotations

from datetime import datetime, timezone


def ensure_utc(dt: datetime) -> datetime:
    """Aware UTC datetime; a naive value is taken to already be UTC."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def ensure_utc_or_none(dt: datetime | None) -> datetime | None:
    return ensure_utc(dt) if dt is not None else None
