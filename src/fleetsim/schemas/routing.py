"""Route calculation schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..services.routing.models import PenaltyReport, RouteSelection


class CalculateRouteRequest(BaseModel):
    points: List[List[float]] = Field(..., description="Waypoints as [latitude, longitude] pairs, at least two.")
    optimize: bool = Field(default=False, description="Let the provider reorder intermediate waypoints.")


class PenaltyModel(BaseModel):
    total_penalty: float
    affected_points: int
    sampled_points: int
    severity_multiplier: float
    time_multiplier: float
    distance_multiplier: float
    zones_hit: List[str]

    @classmethod
    def from_report(cls, report: PenaltyReport) -> "PenaltyModel":
        return cls(
            total_penalty=report.total_penalty,
            affected_points=report.affected_points,
            sampled_points=report.sampled_points,
            severity_multiplier=report.severity_multiplier,
            time_multiplier=report.time_multiplier,
            distance_multiplier=report.distance_multiplier,
            zones_hit=list(report.zones_hit),
        )


class CandidateModel(BaseModel):
    strategy: str
    total_penalty: float
    raw_duration: float
    duration: float
    distance: float
    degraded: bool


class RouteResponse(BaseModel):
    route: List[List[float]]
    distance: float = Field(..., description="Metres, penalty-adjusted when scored.")
    duration: float = Field(..., description="Milliseconds, penalty-adjusted when scored.")
    strategy: str
    fallback: bool = False
    degraded: bool = False
    penalty: Optional[PenaltyModel] = None
    candidates: List[CandidateModel] = Field(default_factory=list)
    failed_strategies: List[str] = Field(default_factory=list)

    @classmethod
    def from_selection(cls, selection: RouteSelection) -> "RouteResponse":
        return cls(
            route=[[lat, lon] for lat, lon in selection.geometry],
            distance=selection.distance_m,
            duration=selection.duration_ms,
            strategy=selection.strategy,
            fallback=selection.fallback,
            degraded=selection.degraded,
            penalty=PenaltyModel.from_report(selection.penalty) if selection.penalty else None,
            candidates=[
                CandidateModel(
                    strategy=summary.strategy,
                    total_penalty=summary.total_penalty,
                    raw_duration=summary.raw_duration_ms,
                    duration=summary.duration_ms,
                    distance=summary.distance_m,
                    degraded=summary.degraded,
                )
                for summary in selection.candidates
            ],
            failed_strategies=list(selection.failed_strategies),
        )
