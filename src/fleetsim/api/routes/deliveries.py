"""Delivery order endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from ... import runtime
from ...schemas.deliveries import DeliveryCreate, DeliveryModel

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.get("", response_model=list[DeliveryModel])
def list_deliveries(
    driver_id: Optional[str] = Query(default=None, description="Only orders assigned to this driver"),
) -> list[DeliveryModel]:
    deliveries = runtime.get_fleet_store().list_deliveries(driver_id=driver_id)
    return [DeliveryModel.from_domain(delivery) for delivery in deliveries]


@router.post("", response_model=DeliveryModel, status_code=status.HTTP_201_CREATED)
def create_delivery(payload: DeliveryCreate) -> DeliveryModel:
    try:
        delivery = runtime.get_fleet_store().add_delivery(
            delivery_id=payload.id,
            driver_id=payload.driver_id,
            pickup_latitude=payload.pickup_latitude,
            pickup_longitude=payload.pickup_longitude,
            delivery_latitude=payload.delivery_latitude,
            delivery_longitude=payload.delivery_longitude,
        )
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Driver {payload.driver_id} not found"
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DeliveryModel.from_domain(delivery)
