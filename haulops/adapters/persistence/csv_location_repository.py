from __future__ import annotations

import csv
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from haulops.app.ports.output import ILocationSearch
from haulops.domain.algorithms.geo_utils import is_valid_coordinates
from haulops.domain.models import Location, LocationFilter, LocationType

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "y", "t"}


def _optional_float(raw: str | None) -> float | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


@dataclass(slots=True)
class CsvLocationRepository(ILocationSearch):
    """Location master loaded from a CSV file.

    Columns: id, name, location_type, latitude, longitude, is_active.

    Env vars:
      - LOCATIONS_CSV_PATH: path to the CSV file (no locations if unset)
    """

    path: str | Path | None = None
    _cache: tuple[Location, ...] | None = field(default=None, init=False, repr=False)

    def _path(self) -> Path | None:
        value = self.path or os.getenv("LOCATIONS_CSV_PATH")
        return Path(value) if value else None

    def load(self) -> tuple[Location, ...]:
        if self._cache is not None:
            return self._cache

        path = self._path()
        if path is None:
            self._cache = ()
            return self._cache

        out: list[Location] = []
        with path.open("r", encoding="utf-8", newline="") as fp:
            reader = csv.DictReader(fp)
            for row in reader:
                loc_id = (row.get("id") or "").strip()
                if not loc_id:
                    continue

                raw_type = (row.get("location_type") or "").strip().upper()
                try:
                    loc_type = LocationType(raw_type)
                except ValueError:
                    loc_type = LocationType.OTHER

                lat = _optional_float(row.get("latitude"))
                lon = _optional_float(row.get("longitude"))
                if lat is not None and lon is not None and not is_valid_coordinates(lat, lon):
                    logger.warning(
                        "Ignoring invalid coordinates in location master",
                        extra={"location_id": loc_id},
                    )
                    lat = lon = None

                raw_active = (row.get("is_active") or "true").strip().lower()
                out.append(
                    Location(
                        id=loc_id,
                        name=(row.get("name") or loc_id).strip(),
                        location_type=loc_type,
                        latitude=lat,
                        longitude=lon,
                        is_active=raw_active in _TRUE,
                    )
                )

        self._cache = tuple(out)
        return self._cache

    def search(self, location_filter: LocationFilter) -> tuple[Location, ...]:
        types = location_filter.location_types
        return tuple(
            loc
            for loc in self.load()
            if (not location_filter.active_only or loc.is_active)
            and (types is None or loc.location_type in types)
        )
