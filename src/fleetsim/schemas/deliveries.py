"""Delivery order schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import Delivery, DeliveryStatus


class DeliveryCreate(BaseModel):
    id: Optional[str] = Field(default=None, description="Order identifier; generated when omitted.")
    driver_id: Optional[str] = None
    pickup_latitude: float = Field(..., ge=-90.0, le=90.0)
    pickup_longitude: float = Field(..., ge=-180.0, le=180.0)
    delivery_latitude: float = Field(..., ge=-90.0, le=90.0)
    delivery_longitude: float = Field(..., ge=-180.0, le=180.0)


class DeliveryModel(BaseModel):
    id: str
    driver_id: Optional[str]
    pickup_latitude: float
    pickup_longitude: float
    delivery_latitude: float
    delivery_longitude: float
    status: DeliveryStatus
    estimated_duration: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, delivery: Delivery) -> "DeliveryModel":
        return cls(
            id=delivery.delivery_id,
            driver_id=delivery.driver_id,
            pickup_latitude=delivery.pickup_latitude,
            pickup_longitude=delivery.pickup_longitude,
            delivery_latitude=delivery.delivery_latitude,
            delivery_longitude=delivery.delivery_longitude,
            status=delivery.status,
            estimated_duration=delivery.estimated_duration_ms,
            created_at=delivery.created_at,
            updated_at=delivery.updated_at,
        )
