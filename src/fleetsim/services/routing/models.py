"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from shapely.geometry import Polygon

from ...models.domain import Coordinate


@dataclass(slots=True)
class PenaltyReport:
    total_penalty: float
    affected_points: int
    sampled_points: int
    severity_multiplier: float
    time_multiplier: float
    distance_multiplier: float = 1.0
    zones_hit: tuple[str, ...] = ()

    @classmethod
    def clean(cls, sampled_points: int) -> "PenaltyReport":
        """Report for a route that touches no active hazard."""
        return cls(
            total_penalty=0.0,
            affected_points=0,
            sampled_points=sampled_points,
            severity_multiplier=1.0,
            time_multiplier=1.0,
        )


@dataclass(slots=True)
class RouteCandidate:
    """One strategy-tagged route proposal considered during selection.

    ``distance_m``/``duration_ms`` are the penalty-adjusted figures once the
    candidate has been scored; the ``raw_*`` fields keep what the provider
    reported.
    """

    strategy: str
    geometry: List[Coordinate]
    distance_m: float
    duration_ms: float
    raw_distance_m: Optional[float] = None
    raw_duration_ms: Optional[float] = None
    penalty: Optional[PenaltyReport] = None
    degraded: bool = False

    def __post_init__(self) -> None:
        if self.raw_distance_m is None:
            self.raw_distance_m = self.distance_m
        if self.raw_duration_ms is None:
            self.raw_duration_ms = self.duration_ms

    @property
    def total_penalty(self) -> float:
        return self.penalty.total_penalty if self.penalty else 0.0


@dataclass(slots=True)
class RouteOptions:
    """Strategy-specific parameters for one provider query."""

    profile: Optional[str] = None
    avoid_polygons: List[Polygon] = field(default_factory=list)
    distance_influence: Optional[float] = None
    algorithm: Optional[str] = None
    max_paths: int = 1
    optimize: bool = False


@dataclass(slots=True)
class RouteContext:
    """Who is asking for a route; used to correlate log lines."""

    driver_id: Optional[str] = None
    leg_index: Optional[int] = None
    reason: str = "request"

    def describe(self) -> str:
        if self.driver_id is None:
            return self.reason
        return f"driver={self.driver_id} leg={self.leg_index} reason={self.reason}"


@dataclass(slots=True)
class CandidateSummary:
    strategy: str
    total_penalty: float
    raw_duration_ms: float
    duration_ms: float
    distance_m: float
    degraded: bool


@dataclass(slots=True)
class RouteSelection:
    """Winning route handed back to callers of ``select_route``."""

    geometry: List[Coordinate]
    distance_m: float
    duration_ms: float
    strategy: str
    penalty: Optional[PenaltyReport] = None
    fallback: bool = False
    degraded: bool = False
    candidates: List[CandidateSummary] = field(default_factory=list)
    failed_strategies: List[str] = field(default_factory=list)

    @classmethod
    def from_candidate(
        cls,
        winner: RouteCandidate,
        candidates: List[RouteCandidate] | None = None,
        failed_strategies: List[str] | None = None,
    ) -> "RouteSelection":
        return cls(
            geometry=list(winner.geometry),
            distance_m=winner.distance_m,
            duration_ms=winner.duration_ms,
            strategy=winner.strategy,
            penalty=winner.penalty,
            degraded=winner.degraded,
            candidates=[summarize(candidate) for candidate in (candidates or [winner])],
            failed_strategies=list(failed_strategies or []),
        )


def summarize(candidate: RouteCandidate) -> CandidateSummary:
    return CandidateSummary(
        strategy=candidate.strategy,
        total_penalty=candidate.total_penalty,
        raw_duration_ms=candidate.raw_duration_ms,
        duration_ms=candidate.duration_ms,
        distance_m=candidate.distance_m,
        degraded=candidate.degraded,
    )
