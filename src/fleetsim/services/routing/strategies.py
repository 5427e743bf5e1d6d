"""Route strategies: differently-configured provider queries for one trip."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Sequence

from ...config import settings
from ...models.domain import Coordinate, HazardZone
from ..geospatial import (
    along_track_fraction,
    bearing_degrees,
    destination_point,
    distance_km,
    distance_to_segment_km,
    square_around,
)
from .adapter import RouteQueryAdapter
from .errors import ProviderUnavailable
from .models import RouteCandidate, RouteOptions

logger = logging.getLogger(__name__)


class RouteStrategy(ABC):
    """Contract for route strategy implementations."""

    name: str = "strategy"

    @abstractmethod
    def generate(
        self,
        adapter: RouteQueryAdapter,
        waypoints: Sequence[Coordinate],
        hazards: Sequence[HazardZone],
        *,
        optimize: bool = False,
    ) -> list[RouteCandidate]:
        raise NotImplementedError


class DirectStrategy(RouteStrategy):
    """Plain waypoint query without any hazard hints."""

    name = "direct"

    def generate(self, adapter, waypoints, hazards, *, optimize=False):
        return [adapter.query(waypoints, RouteOptions(optimize=optimize), strategy=self.name)]


class AvoidZonesStrategy(RouteStrategy):
    """Direct query with one square exclusion polygon per active hazard."""

    name = "avoid_zones"

    def generate(self, adapter, waypoints, hazards, *, optimize=False):
        polygons = [
            square_around(zone.latitude, zone.longitude, zone.radius_km)
            for zone in hazards
            if zone.active
        ]
        if not polygons:
            return []
        options = RouteOptions(avoid_polygons=polygons, optimize=optimize)
        return [adapter.query(waypoints, options, strategy=self.name)]


class DetourWaypointStrategy(RouteStrategy):
    """Push two-point trips around nearby hazards with synthetic via points."""

    name = "detour"

    def __init__(self, trigger_factor: float | None = None, offset_factor: float | None = None) -> None:
        self.trigger_factor = trigger_factor if trigger_factor is not None else settings.detour_trigger_factor
        self.offset_factor = offset_factor if offset_factor is not None else settings.detour_offset_factor

    def detour_waypoints(
        self, start: Coordinate, end: Coordinate, hazards: Sequence[HazardZone]
    ) -> list[Coordinate]:
        trip_bearing = bearing_degrees(start[0], start[1], end[0], end[1])
        placed: list[tuple[float, Coordinate]] = []
        for zone in hazards:
            if not zone.active:
                continue
            proximity = distance_to_segment_km(zone.center, start, end)
            if proximity > self.trigger_factor * zone.radius_km:
                continue

            offset = self.offset_factor * zone.radius_km
            left = destination_point(zone.latitude, zone.longitude, (trip_bearing - 90) % 360, offset)
            right = destination_point(zone.latitude, zone.longitude, (trip_bearing + 90) % 360, offset)
            left_cost = distance_km(start, left) + distance_km(left, end)
            right_cost = distance_km(start, right) + distance_km(right, end)
            waypoint = left if left_cost <= right_cost else right
            placed.append((along_track_fraction(zone.center, start, end), waypoint))

        placed.sort(key=lambda item: item[0])
        return [waypoint for _, waypoint in placed]

    def generate(self, adapter, waypoints, hazards, *, optimize=False):
        if len(waypoints) != 2:
            return []
        start, end = waypoints[0], waypoints[1]
        vias = self.detour_waypoints(start, end, hazards)
        if not vias:
            return []
        logger.debug(f"Detour strategy inserting {len(vias)} waypoint(s)")
        return [adapter.query([start, *vias, end], RouteOptions(), strategy=self.name)]


class WeightingStrategy(RouteStrategy):
    """Re-query with a different optimisation objective."""

    def __init__(self, objective: str, distance_influence: float) -> None:
        self.objective = objective
        self.distance_influence = distance_influence
        self.name = f"weighting_{objective}"

    def generate(self, adapter, waypoints, hazards, *, optimize=False):
        options = RouteOptions(distance_influence=self.distance_influence, optimize=optimize)
        return [adapter.query(waypoints, options, strategy=self.name)]


class AlternativePathStrategy(RouteStrategy):
    """Single alternative_route query; each returned path is its own candidate."""

    name = "alternative"

    def __init__(self, max_paths: int | None = None) -> None:
        self.max_paths = max_paths if max_paths is not None else settings.max_alternative_paths

    def generate(self, adapter, waypoints, hazards, *, optimize=False):
        if len(waypoints) != 2:
            # GraphHopper only computes alternatives between two points
            return []
        options = RouteOptions(algorithm="alternative_route", max_paths=self.max_paths)
        return adapter.query_paths(waypoints, options, strategy=self.name, limit=self.max_paths)


def get_strategy(name: str, **kwargs: Any) -> RouteStrategy:
    match name:
        case "direct":
            return DirectStrategy()
        case "avoid_zones":
            return AvoidZonesStrategy()
        case "detour":
            return DetourWaypointStrategy(**kwargs)
        case "weighting_fastest":
            return WeightingStrategy("fastest", 0.0)
        case "weighting_shortest":
            return WeightingStrategy("shortest", settings.shortest_distance_influence)
        case "alternative":
            return AlternativePathStrategy(**kwargs)
        case _:
            raise ValueError(f"Unknown route strategy '{name}'.")


DEFAULT_STRATEGY_NAMES = (
    "direct",
    "avoid_zones",
    "detour",
    "weighting_fastest",
    "weighting_shortest",
    "alternative",
)


def default_strategies() -> list[RouteStrategy]:
    return [get_strategy(name) for name in DEFAULT_STRATEGY_NAMES]


def generate_candidates(
    adapter: RouteQueryAdapter,
    waypoints: Sequence[Coordinate],
    hazards: Sequence[HazardZone],
    strategies: Sequence[RouteStrategy] | None = None,
    *,
    optimize: bool = False,
    max_workers: int | None = None,
) -> tuple[list[RouteCandidate], list[str]]:
    """Run every strategy concurrently and collect what comes back.

    Returns:
        (candidates, failed strategy names). Candidates keep the order of the
        strategy list so ties are resolved deterministically.
    """
    strategies = list(strategies) if strategies is not None else default_strategies()
    if not strategies:
        return [], []
    workers = max_workers or settings.routing_max_parallel_requests

    results: dict[int, list[RouteCandidate]] = {}
    failures: list[str] = []
    with ThreadPoolExecutor(max_workers=min(workers, len(strategies))) as executor:
        future_to_index = {
            executor.submit(strategy.generate, adapter, waypoints, hazards, optimize=optimize): index
            for index, strategy in enumerate(strategies)
        }
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            strategy = strategies[index]
            try:
                results[index] = future.result()
            except ProviderUnavailable as exc:
                failures.append(strategy.name)
                logger.warning(f"Route strategy '{strategy.name}' failed: {exc}")

    candidates = [candidate for index in sorted(results) for candidate in results[index]]
    return candidates, sorted(failures, key=[s.name for s in strategies].index)
