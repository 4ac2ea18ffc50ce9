from __future__ import annotations

from fastapi import APIRouter, Depends

from haulops.adapters.api.dependencies import get_proximity_detector
from haulops.adapters.api.schemas.common import Envelope
from haulops.adapters.api.schemas.proximity import (
    NearbyLocationSchema,
    NearbyRequestSchema,
)
from haulops.app.services.proximity_detector import ProximityDetector
from haulops.domain.models import GeoPoint

router = APIRouter(prefix="/proximity", tags=["proximity"])


@router.post("/nearby", response_model=Envelope[list[NearbyLocationSchema]])
def find_nearby_locations(
    req: NearbyRequestSchema,
    detector: ProximityDetector = Depends(get_proximity_detector),
) -> Envelope[list[NearbyLocationSchema]]:
    nearby = detector.find_nearby(
        GeoPoint(lat=req.position.lat, lon=req.position.lon),
        req.radius_meters,
        req.phase,
        req.limit,
    )
    return Envelope[list[NearbyLocationSchema]](
        data=[
            NearbyLocationSchema(
                id=n.location.id,
                name=n.location.name,
                location_type=n.location.location_type.value,
                latitude=n.location.latitude,
                longitude=n.location.longitude,
                distance_m=n.distance_m,
            )
            for n in nearby
        ],
        message=f"{len(nearby)} locations nearby",
    )
