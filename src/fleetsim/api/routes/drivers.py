"""Driver endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ... import runtime
from ...schemas.deliveries import DeliveryModel
from ...schemas.drivers import DriverCreate, DriverModel, DriverRouteResponse
from ...services.routing.models import RouteContext
from ...services.simulation.state_machine import build_legs

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.get("", response_model=list[DriverModel])
def list_drivers() -> list[DriverModel]:
    return [DriverModel.from_domain(driver) for driver in runtime.get_fleet_store().list_drivers()]


@router.post("", response_model=DriverModel, status_code=status.HTTP_201_CREATED)
def create_driver(payload: DriverCreate) -> DriverModel:
    try:
        driver = runtime.get_fleet_store().add_driver(
            driver_id=payload.id,
            name=payload.name,
            latitude=payload.latitude,
            longitude=payload.longitude,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DriverModel.from_domain(driver)


@router.get("/{driver_id}/route", response_model=DriverRouteResponse)
def driver_route(driver_id: str) -> DriverRouteResponse:
    """Route from the driver's position through every open pickup and drop-off.

    The provider is allowed to reorder the intermediate stops.
    """
    fleet = runtime.get_fleet_store()
    try:
        driver = fleet.get_driver(driver_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Driver {driver_id} not found") from exc

    deliveries = fleet.deliveries_for_driver(driver_id)
    if not deliveries:
        return DriverRouteResponse(route=[], distance=0.0, duration=0.0)

    points = [driver.position, *(leg.target for leg in build_legs(deliveries))]
    try:
        selection = runtime.get_route_service().select_route(
            points,
            RouteContext(driver_id=driver_id, reason="driver_route"),
            optimize=True,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error calculating route for driver {driver_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to calculate driver route: {str(exc)}",
        ) from exc

    return DriverRouteResponse(
        route=[[lat, lon] for lat, lon in selection.geometry],
        distance=selection.distance_m,
        duration=selection.duration_ms,
        strategy=selection.strategy,
        fallback=selection.fallback,
        deliveries=[DeliveryModel.from_domain(delivery) for delivery in deliveries],
    )
