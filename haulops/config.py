from __future__ import annotations

import os
from dataclasses import dataclass


_TRUTHY = {"1", "true", "yes", "on"}


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_str(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip() or None


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    return int(raw) if raw is not None else default


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    return float(raw) if raw is not None else default


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings, read once from the environment.

    AWS endpoint/region resolution stays in `AwsRuntimeConfig`.
    """

    storage: str = "memory"
    trips_table: str | None = None
    vehicles_table: str | None = None
    gps_table: str | None = None
    activities_table: str | None = None
    locations_csv_path: str | None = None
    vehicles_csv_path: str | None = None
    user_directory_url: str | None = None
    gps_batch_workers: int = 8
    stats_max_samples: int = 10_000
    stats_time_budget_s: float = 5.0
    nearby_default_limit: int = 5
    reveal_errors: bool = False

    @staticmethod
    def from_env() -> "Settings":
        storage = (_env_str("HAULOPS_STORAGE") or "memory").lower()
        if storage not in {"memory", "dynamodb"}:
            raise ValueError(f"HAULOPS_STORAGE must be 'memory' or 'dynamodb', got {storage!r}")

        return Settings(
            storage=storage,
            trips_table=_env_str("DDB_TRIPS_TABLE"),
            vehicles_table=_env_str("DDB_VEHICLES_TABLE"),
            gps_table=_env_str("DDB_GPS_TABLE"),
            activities_table=_env_str("DDB_ACTIVITIES_TABLE"),
            locations_csv_path=_env_str("LOCATIONS_CSV_PATH"),
            vehicles_csv_path=_env_str("VEHICLES_CSV_PATH"),
            user_directory_url=_env_str("USER_DIRECTORY_URL"),
            gps_batch_workers=_env_int("GPS_BATCH_WORKERS", 8),
            stats_max_samples=_env_int("STATS_MAX_SAMPLES", 10_000),
            stats_time_budget_s=_env_float("STATS_TIME_BUDGET_S", 5.0),
            nearby_default_limit=_env_int("NEARBY_DEFAULT_LIMIT", 5),
            reveal_errors=env_bool("HAULOPS_REVEAL_ERRORS", False),
        )
