from __future__ import annotations

import csv
import logging
from pathlib import Path

from haulops.domain.models import PersistedVehicleStatus, Vehicle

logger = logging.getLogger(__name__)


def load_vehicles_csv(path: str | Path) -> list[Vehicle]:
    """Seed rows for the in-memory vehicle master.

    Columns: id, status, plate_number, model. A missing status means ACTIVE;
    rows with an unknown status are skipped.
    """

    out: list[Vehicle] = []
    with Path(path).open("r", encoding="utf-8", newline="") as fp:
        for row in csv.DictReader(fp):
            vehicle_id = (row.get("id") or "").strip()
            if not vehicle_id:
                continue

            raw_status = (row.get("status") or "ACTIVE").strip().upper()
            try:
                status = PersistedVehicleStatus(raw_status)
            except ValueError:
                logger.warning(
                    "Skipping vehicle with unknown status",
                    extra={"vehicle_id": vehicle_id, "status": raw_status},
                )
                continue

            out.append(
                Vehicle(
                    id=vehicle_id,
                    status=status,
                    plate_number=(row.get("plate_number") or "").strip() or None,
                    model=(row.get("model") or "").strip() or None,
                )
            )
    return out
