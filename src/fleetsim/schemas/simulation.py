"""Simulation control and state schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..config import settings
from ..services.simulation.state_machine import DriverRuntimeState, Leg


class SimulationStartRequest(BaseModel):
    speed_kmh: Optional[float] = Field(default=None, gt=0.0, description="Defaults to the configured speed.")


class SpeedRequest(BaseModel):
    speed_kmh: float = Field(..., gt=0.0)


class TickRequest(BaseModel):
    delta_ms: float = Field(default_factory=lambda: float(settings.simulation_tick_ms), ge=0.0)
    wait_for_routes: bool = Field(
        default=False,
        description="Block until outstanding route requests finish before advancing.",
    )


class LegModel(BaseModel):
    order_id: str
    target_type: str
    latitude: float
    longitude: float

    @classmethod
    def from_leg(cls, leg: Leg) -> "LegModel":
        return cls(order_id=leg.order_id, target_type=leg.target_type, latitude=leg.target[0], longitude=leg.target[1])


class SimulationStateModel(BaseModel):
    driver_id: str
    phase: str
    is_moving: bool
    position: List[float]
    heading: float
    speed_kmh: float
    leg_index: int
    legs: List[LegModel]
    current_leg: Optional[LegModel] = None
    active_route: List[List[float]]
    route_cursor: int
    route_strategy: Optional[str] = None
    route_fallback: bool = False
    route_penalty: float = 0.0
    reroute_count: int
    completed: bool

    @classmethod
    def from_state(cls, state: DriverRuntimeState) -> "SimulationStateModel":
        selection = state.last_selection
        current = state.current_leg
        return cls(
            driver_id=state.driver_id,
            phase=state.phase.value,
            is_moving=state.is_moving,
            position=[state.position[0], state.position[1]],
            heading=state.heading,
            speed_kmh=state.speed_kmh,
            leg_index=state.leg_index,
            legs=[LegModel.from_leg(leg) for leg in state.legs],
            current_leg=LegModel.from_leg(current) if current else None,
            active_route=[[lat, lon] for lat, lon in state.active_route],
            route_cursor=state.route_cursor,
            route_strategy=selection.strategy if selection else None,
            route_fallback=selection.fallback if selection else False,
            route_penalty=selection.penalty.total_penalty if selection and selection.penalty else 0.0,
            reroute_count=state.reroute_count,
            completed=state.completed,
        )


class MetricsResponse(BaseModel):
    total_deliveries: int
    completed_deliveries: int
    pending_deliveries: int
    in_transit_deliveries: int
    completion_rate: float = Field(..., description="Percentage of delivered orders, 0-100.")
    active_hazards: int
    total_drivers: int
    moving_drivers: int
    total_reroutes: int
