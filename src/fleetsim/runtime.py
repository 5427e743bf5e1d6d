"""Process-wide service instances shared by the API routers."""

from __future__ import annotations

import logging
from functools import lru_cache

from .persistence.memory import InMemoryFleetStore
from .services.hazards import HazardZoneStore
from .services.routing import GraphHopperClient, RouteQueryAdapter, RouteSelectionService
from .services.simulation import SimulationClock, SimulationEngine

logger = logging.getLogger(__name__)


@lru_cache()
def get_fleet_store() -> InMemoryFleetStore:
    return InMemoryFleetStore()


@lru_cache()
def get_hazard_store() -> HazardZoneStore:
    return HazardZoneStore()


@lru_cache()
def get_routing_client() -> GraphHopperClient:
    return GraphHopperClient()


@lru_cache()
def get_route_service() -> RouteSelectionService:
    adapter = RouteQueryAdapter(get_routing_client())
    return RouteSelectionService.from_store(adapter, get_hazard_store())


@lru_cache()
def get_engine() -> SimulationEngine:
    """Simulation engine subscribed to hazard changes."""
    engine = SimulationEngine(get_route_service(), get_fleet_store())
    get_hazard_store().subscribe(engine.on_hazard_changed)
    logger.info("Simulation engine created and subscribed to hazard changes")
    return engine


@lru_cache()
def get_clock() -> SimulationClock:
    return SimulationClock(get_engine())


def reset_runtime() -> None:
    """Drop every cached instance; the next getter call builds fresh ones."""
    if get_clock.cache_info().currsize:
        get_clock().stop()
    if get_engine.cache_info().currsize:
        get_engine().shutdown()
    for getter in (get_clock, get_engine, get_route_service, get_routing_client, get_hazard_store, get_fleet_store):
        getter.cache_clear()
