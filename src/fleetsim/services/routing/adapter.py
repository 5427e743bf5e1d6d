"""Route Query Adapter: provider requests in, normalised candidates out."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol, Sequence

import httpx
from shapely.geometry import mapping

from ...config import settings
from ...models.domain import Coordinate
from .errors import GeometryUnparseable, ProviderUnavailable
from .geometry import geometry_from_path
from .models import RouteCandidate, RouteOptions

logger = logging.getLogger(__name__)


class RoutingProvider(Protocol):
    def route(self, payload: dict[str, Any]) -> dict: ...


def build_route_payload(waypoints: Sequence[Coordinate], options: RouteOptions) -> dict[str, Any]:
    """Translate waypoints and strategy options into a GraphHopper ``/route`` body."""

    payload: dict[str, Any] = {
        # GraphHopper's JSON API takes [lon, lat]
        "points": [[lon, lat] for lat, lon in waypoints],
        "points_encoded": True,
        "instructions": False,
        "calc_points": True,
        "elevation": False,
        "locale": settings.graphhopper_locale,
    }
    if options.profile:
        payload["profile"] = options.profile
    if options.optimize:
        payload["optimize"] = "true"

    custom_model: dict[str, Any] = {}
    if options.avoid_polygons:
        features = []
        priority = []
        for index, polygon in enumerate(options.avoid_polygons):
            area_id = f"hazard_{index}"
            features.append(
                {
                    "type": "Feature",
                    "id": area_id,
                    "properties": {},
                    "geometry": mapping(polygon),
                }
            )
            priority.append({"if": f"in_{area_id}", "multiply_by": "0"})
        custom_model["areas"] = {"type": "FeatureCollection", "features": features}
        custom_model["priority"] = priority
    if options.distance_influence is not None:
        custom_model["distance_influence"] = options.distance_influence
    if custom_model:
        payload["custom_model"] = custom_model
        payload["ch.disable"] = True

    if options.algorithm:
        payload["algorithm"] = options.algorithm
        payload["ch.disable"] = True
        if options.algorithm == "alternative_route":
            payload["alternative_route.max_paths"] = max(options.max_paths, 2)
    return payload


class RouteQueryAdapter:
    """Wraps the routing provider and normalises every answer into ``RouteCandidate``s.

    Holds no state between calls; the provider object is only used to send
    requests.
    """

    def __init__(self, provider: RoutingProvider) -> None:
        self.provider = provider

    def query(self, waypoints: Sequence[Coordinate], options: RouteOptions, *, strategy: str = "direct") -> RouteCandidate:
        return self.query_paths(waypoints, options, strategy=strategy, limit=1)[0]

    def query_paths(
        self,
        waypoints: Sequence[Coordinate],
        options: RouteOptions,
        *,
        strategy: str = "direct",
        limit: int = 1,
    ) -> list[RouteCandidate]:
        """Run one provider query and return up to ``limit`` candidates.

        Raises:
            ProviderUnavailable: the query failed or returned no usable path.
        """
        if len(waypoints) < 2:
            raise ValueError("At least two waypoints are required for a route query.")

        payload = build_route_payload(waypoints, options)
        try:
            data = self.provider.route(payload)
        except (httpx.HTTPError, ValueError, ConnectionError, OSError) as exc:
            raise ProviderUnavailable(f"{strategy}: {exc}", strategy=strategy) from exc

        paths = data.get("paths") if isinstance(data, Mapping) else None
        if not paths:
            raise ProviderUnavailable(f"{strategy}: provider returned no paths", strategy=strategy)

        candidates = []
        for index, path in enumerate(paths[:limit], start=1):
            tag = strategy if limit == 1 else f"{strategy}_{index}"
            candidates.append(self._to_candidate(path, waypoints, tag))
        return candidates

    def _to_candidate(self, path: Any, waypoints: Sequence[Coordinate], strategy: str) -> RouteCandidate:
        degraded = False
        if not isinstance(path, Mapping):
            raise ProviderUnavailable(f"{strategy}: path entry is not an object", strategy=strategy)
        try:
            geometry = geometry_from_path(path)
            if len(geometry) < 2:
                raise GeometryUnparseable(f"only {len(geometry)} point(s) in geometry")
        except GeometryUnparseable as exc:
            logger.warning(f"Unparseable geometry for strategy '{strategy}', using requested waypoints: {exc}")
            geometry = list(waypoints)
            degraded = True

        return RouteCandidate(
            strategy=strategy,
            geometry=geometry,
            distance_m=_as_float(path.get("distance")),
            duration_ms=_as_float(path.get("time")),
            degraded=degraded,
        )


def _as_float(value: Any) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0
