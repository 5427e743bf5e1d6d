"""Driver request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Driver
from .deliveries import DeliveryModel


class DriverCreate(BaseModel):
    id: Optional[str] = Field(default=None, description="Driver identifier; generated when omitted.")
    name: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class DriverModel(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, driver: Driver) -> "DriverModel":
        return cls(
            id=driver.driver_id,
            name=driver.name,
            latitude=driver.latitude,
            longitude=driver.longitude,
            status=driver.status,
            created_at=driver.created_at,
        )


class DriverRouteResponse(BaseModel):
    """Route through the driver's position and every open pickup/drop-off."""

    route: List[List[float]]
    distance: float = Field(..., description="Metres.")
    duration: float = Field(..., description="Milliseconds.")
    strategy: Optional[str] = None
    fallback: bool = False
    deliveries: List[DeliveryModel] = Field(default_factory=list)
