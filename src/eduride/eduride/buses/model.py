from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class GeoPoint:
    """GeoJSON-style point; coordinates are (longitude, latitude)."""

    lng: float = 0.0
    lat: float = 0.0

    def to_dict(self) -> dict:
        return {"type": "Point", "coordinates": [self.lng, self.lat]}


@dataclass(frozen=True)
class Bus:
    bus_pk: int
    bus_code: str
    name: str
    current_location: GeoPoint = GeoPoint()
    location_updated_at: Optional[datetime] = None
    is_active: bool = True
