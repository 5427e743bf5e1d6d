"""Simulation control endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from ... import runtime
from ...schemas.simulation import SimulationStartRequest, SimulationStateModel, SpeedRequest, TickRequest

router = APIRouter(tags=["simulation"])


def _not_found(driver_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Driver {driver_id} not found or not simulated",
    )


@router.post("/drivers/{driver_id}/simulation/start", response_model=SimulationStateModel)
def start_simulation(driver_id: str, payload: Optional[SimulationStartRequest] = None) -> SimulationStateModel:
    speed = payload.speed_kmh if payload else None
    try:
        state = runtime.get_engine().start(driver_id, speed_kmh=speed)
    except KeyError as exc:
        raise _not_found(driver_id) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SimulationStateModel.from_state(state)


@router.post("/drivers/{driver_id}/simulation/stop", response_model=SimulationStateModel)
def stop_simulation(driver_id: str) -> SimulationStateModel:
    try:
        state = runtime.get_engine().stop(driver_id)
    except KeyError as exc:
        raise _not_found(driver_id) from exc
    return SimulationStateModel.from_state(state)


@router.post("/drivers/{driver_id}/simulation/speed", response_model=SimulationStateModel)
def set_simulation_speed(driver_id: str, payload: SpeedRequest) -> SimulationStateModel:
    try:
        state = runtime.get_engine().set_speed(driver_id, payload.speed_kmh)
    except KeyError as exc:
        raise _not_found(driver_id) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SimulationStateModel.from_state(state)


@router.post("/drivers/{driver_id}/simulation/tick", response_model=SimulationStateModel)
def tick_simulation(driver_id: str, payload: Optional[TickRequest] = None) -> SimulationStateModel:
    """Advance one driver manually, e.g. when the background clock is disabled."""
    payload = payload or TickRequest()
    engine = runtime.get_engine()
    try:
        if payload.wait_for_routes:
            engine.wait_for_routes(driver_id, timeout=30.0)
        state = engine.tick(driver_id, payload.delta_ms)
    except KeyError as exc:
        raise _not_found(driver_id) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SimulationStateModel.from_state(state)


@router.get("/drivers/{driver_id}/simulation-state", response_model=SimulationStateModel)
def simulation_state(driver_id: str) -> SimulationStateModel:
    try:
        state = runtime.get_engine().get_state(driver_id)
    except KeyError as exc:
        raise _not_found(driver_id) from exc
    return SimulationStateModel.from_state(state)


@router.get("/simulation/drivers", response_model=list[SimulationStateModel])
def list_simulated_drivers() -> list[SimulationStateModel]:
    return [SimulationStateModel.from_state(state) for state in runtime.get_engine().list_states()]
