from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class Envelope(BaseModel, Generic[T]):
    """Uniform response body for every endpoint."""

    success: bool = True
    data: T | None = None
    message: str = "OK"
    error: str | None = None
