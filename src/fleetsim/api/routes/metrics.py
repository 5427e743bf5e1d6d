"""Dashboard metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from ... import runtime
from ...schemas.simulation import MetricsResponse

router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_model=MetricsResponse)
def metrics() -> MetricsResponse:
    deliveries = runtime.get_fleet_store().list_deliveries()
    states = runtime.get_engine().list_states()

    total = len(deliveries)
    completed = sum(1 for delivery in deliveries if delivery.status == "delivered")
    in_transit = sum(1 for delivery in deliveries if delivery.status == "picked_up")
    return MetricsResponse(
        total_deliveries=total,
        completed_deliveries=completed,
        pending_deliveries=total - completed,
        in_transit_deliveries=in_transit,
        completion_rate=round(completed / total * 100, 1) if total else 0.0,
        active_hazards=len(runtime.get_hazard_store().list_active()),
        total_drivers=len(runtime.get_fleet_store().list_drivers()),
        moving_drivers=sum(1 for state in states if state.is_moving),
        total_reroutes=sum(state.reroute_count for state in states),
    )
