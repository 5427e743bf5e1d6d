"""Weather event endpoints.

Creating or toggling an event notifies the simulation engine, which reroutes
every driver currently on the road.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ... import runtime
from ...schemas.hazards import WeatherEventCreate, WeatherEventModel

router = APIRouter(prefix="/weather-events", tags=["weather-events"])


@router.get("", response_model=list[WeatherEventModel])
def list_weather_events() -> list[WeatherEventModel]:
    return [WeatherEventModel.from_domain(zone) for zone in runtime.get_hazard_store().list_all()]


@router.post("", response_model=WeatherEventModel, status_code=status.HTTP_201_CREATED)
def create_weather_event(payload: WeatherEventCreate) -> WeatherEventModel:
    try:
        zone = runtime.get_hazard_store().create(
            zone_id=payload.id,
            kind=payload.type,
            latitude=payload.latitude,
            longitude=payload.longitude,
            radius_km=payload.radius,
            active=payload.active,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return WeatherEventModel.from_domain(zone)


@router.patch("/{event_id}/toggle", response_model=WeatherEventModel)
def toggle_weather_event(event_id: str) -> WeatherEventModel:
    try:
        zone = runtime.get_hazard_store().toggle(event_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Weather event not found") from exc
    return WeatherEventModel.from_domain(zone)
