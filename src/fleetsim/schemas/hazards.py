"""Weather event (hazard zone) schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import HazardZone, SeverityClass


class WeatherEventCreate(BaseModel):
    id: Optional[str] = Field(default=None, description="Zone identifier, e.g. 'W001'; generated when omitted.")
    type: str = Field(..., min_length=1, description="Free-text kind such as 'storm' or 'traffic'.")
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    radius: float = Field(..., gt=0.0, description="Radius in kilometres.")
    active: bool = True


class WeatherEventModel(BaseModel):
    id: str
    type: str
    latitude: float
    longitude: float
    radius: float
    active: bool
    severity: SeverityClass
    created_at: datetime

    @classmethod
    def from_domain(cls, zone: HazardZone) -> "WeatherEventModel":
        return cls(
            id=zone.zone_id,
            type=zone.kind,
            latitude=zone.latitude,
            longitude=zone.longitude,
            radius=zone.radius_km,
            active=zone.active,
            severity=zone.severity_class,
            created_at=zone.created_at,
        )
