"""Weather-aware route selection orchestration."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from ...models.domain import Coordinate, HazardZone
from ..hazards.store import HazardZoneStore
from .adapter import RouteQueryAdapter
from .errors import ProviderUnavailable
from .models import RouteContext, RouteOptions, RouteSelection
from .scoring import score_candidate
from .selector import select_best
from .strategies import DirectStrategy, RouteStrategy, default_strategies, generate_candidates

logger = logging.getLogger(__name__)


def _validate_waypoints(waypoints: Sequence[Coordinate]) -> list[Coordinate]:
    if len(waypoints) < 2:
        raise ValueError("At least 2 points are required.")
    cleaned = []
    for point in waypoints:
        if len(point) != 2:
            raise ValueError("Points must be [latitude, longitude] pairs.")
        lat, lon = float(point[0]), float(point[1])
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            raise ValueError(f"Point ({lat}, {lon}) is outside valid latitude/longitude ranges.")
        cleaned.append((lat, lon))
    return cleaned


def _straight_line(points: list[Coordinate], failures: list[str]) -> RouteSelection:
    return RouteSelection(
        geometry=list(points),
        distance_m=0.0,
        duration_ms=0.0,
        strategy="fallback",
        fallback=True,
        failed_strategies=list(failures),
    )


class RouteSelectionService:
    """Queries the provider under several strategies and returns the best route.

    Args:
        adapter: Route Query Adapter wrapping the routing provider.
        hazard_source: Callable returning the current active hazard snapshot,
            typically ``HazardZoneStore.list_active``.
        strategies_factory: Builds the strategy list for one request.
    """

    def __init__(
        self,
        adapter: RouteQueryAdapter,
        hazard_source: Callable[[], Sequence[HazardZone]],
        strategies_factory: Callable[[], list[RouteStrategy]] = default_strategies,
    ) -> None:
        self.adapter = adapter
        self.hazard_source = hazard_source
        self.strategies_factory = strategies_factory

    @classmethod
    def from_store(cls, adapter: RouteQueryAdapter, store: HazardZoneStore) -> "RouteSelectionService":
        return cls(adapter, store.list_active)

    def select_route(
        self,
        waypoints: Sequence[Coordinate],
        context: RouteContext | None = None,
        *,
        optimize: bool = False,
    ) -> RouteSelection:
        points = _validate_waypoints(waypoints)
        context = context or RouteContext()
        # one snapshot per selection pass so every candidate sees the same hazards
        hazards = tuple(zone for zone in self.hazard_source() if zone.active)

        if not hazards:
            strategies: list[RouteStrategy] = [DirectStrategy()]
        else:
            strategies = self.strategies_factory()

        candidates, failures = generate_candidates(self.adapter, points, hazards, strategies, optimize=optimize)

        if candidates:
            for candidate in candidates:
                score_candidate(candidate, hazards)
            winner = select_best(candidates)
            logger.info(
                f"Route selected ({context.describe()}): strategy={winner.strategy}, "
                f"penalty={winner.total_penalty:.1f}, candidates={len(candidates)}, "
                f"hazards={len(hazards)}, failed={failures or 'none'}"
            )
            return RouteSelection.from_candidate(winner, candidates, failures)

        if not hazards:
            # the direct query was the only one issued and it already failed
            logger.warning(f"Direct route query failed ({context.describe()}), using straight-line fallback")
            return _straight_line(points, failures)

        logger.warning(f"All route strategies failed ({context.describe()}); retrying unscored direct query")
        try:
            direct = self.adapter.query(points, RouteOptions(optimize=optimize), strategy="direct")
        except ProviderUnavailable as exc:
            logger.warning(f"Routing provider unavailable ({context.describe()}), using straight-line fallback: {exc}")
            return _straight_line(points, [*failures, "direct"])
        # unscored: penalty stays None
        return RouteSelection.from_candidate(direct, [direct], failures)
