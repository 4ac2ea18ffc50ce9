from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ActivityType(str, Enum):
    LOADING = "LOADING"
    UNLOADING = "UNLOADING"


@dataclass(frozen=True, slots=True)
class ActivityRecord:
    trip_id: str
    location_id: str
    item_id: str
    quantity: float
    activity_type: ActivityType
    start_time: datetime
    end_time: datetime | None = None
