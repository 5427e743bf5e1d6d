"""Weather-aware routing services."""

from .adapter import RouteQueryAdapter, build_route_payload
from .errors import GeometryUnparseable, ProviderUnavailable, RoutingError
from .graphhopper_client import GraphHopperClient, check_health
from .models import PenaltyReport, RouteCandidate, RouteContext, RouteOptions, RouteSelection
from .scoring import score_candidate
from .selector import select_best
from .service import RouteSelectionService

__all__ = [
    "GraphHopperClient",
    "check_health",
    "RouteQueryAdapter",
    "build_route_payload",
    "RouteSelectionService",
    "RouteCandidate",
    "RouteContext",
    "RouteOptions",
    "RouteSelection",
    "PenaltyReport",
    "score_candidate",
    "select_best",
    "RoutingError",
    "ProviderUnavailable",
    "GeometryUnparseable",
]
