"""Weather penalty scoring of candidate routes against active hazard zones.

The arithmetic is a demo heuristic kept for compatibility with the original
dashboard numbers, not a validated cost model:

* every (sampled point, hazard) hit adds the hazard's class base penalty;
* ``severity = min(1 + hits * 0.5, 10)`` and ``penalty = base_total * severity``;
* duration is scaled by ``1 + penalty * 0.1`` and distance by ``1 + penalty * 0.02``.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ...config import settings
from ...models.domain import Coordinate, HazardZone
from ..geospatial import distance_km, interpolate_linear
from .models import PenaltyReport, RouteCandidate

BASE_PENALTIES: dict[str, float] = {
    "storm": 100.0,
    "traffic": 50.0,
    "light": 20.0,
    "other": 30.0,
}
SEVERITY_STEP = 0.5
SEVERITY_CAP = 10.0
TIME_FACTOR = 0.1
DISTANCE_FACTOR = 0.02


def upsample_geometry(
    points: Sequence[Coordinate],
    min_points: int | None = None,
    subdivisions: int | None = None,
) -> list[Coordinate]:
    """Densify sparse geometry so hazard sampling does not miss small zones.

    Geometry with at least ``min_points`` vertices is returned as-is; sparser
    geometry gets ``subdivisions`` evenly spaced samples per segment.
    """
    min_points = min_points if min_points is not None else settings.penalty_min_sample_points
    subdivisions = subdivisions if subdivisions is not None else settings.penalty_subdivisions

    if len(points) >= min_points or len(points) < 2:
        return list(points)

    samples: list[Coordinate] = []
    for start, end in zip(points, points[1:]):
        for step in range(subdivisions):
            samples.append(interpolate_linear(start, end, step / subdivisions))
    samples.append(points[-1])
    return samples


def score_geometry(points: Sequence[Coordinate], hazards: Iterable[HazardZone]) -> PenaltyReport:
    active = [zone for zone in hazards if zone.active]
    samples = upsample_geometry(points)
    if not active:
        return PenaltyReport.clean(len(samples))

    affected = 0
    base_total = 0.0
    zones_hit: list[str] = []
    for zone in active:
        base = BASE_PENALTIES.get(zone.severity_class, BASE_PENALTIES["other"])
        hits = sum(1 for point in samples if distance_km(point, zone.center) <= zone.radius_km)
        if hits:
            affected += hits
            base_total += base * hits
            zones_hit.append(zone.zone_id)

    if affected == 0:
        return PenaltyReport.clean(len(samples))

    severity = min(1 + affected * SEVERITY_STEP, SEVERITY_CAP)
    penalty = base_total * severity
    return PenaltyReport(
        total_penalty=penalty,
        affected_points=affected,
        sampled_points=len(samples),
        severity_multiplier=severity,
        time_multiplier=1 + penalty * TIME_FACTOR,
        distance_multiplier=1 + penalty * DISTANCE_FACTOR,
        zones_hit=tuple(zones_hit),
    )


def score_candidate(candidate: RouteCandidate, hazards: Iterable[HazardZone]) -> PenaltyReport:
    """Score a candidate and apply the penalty to its distance/duration in place.

    Adjustments are always computed from the provider's raw figures, so
    scoring the same candidate against the same snapshot twice is a no-op.
    """
    report = score_geometry(candidate.geometry, hazards)
    candidate.penalty = report
    if report.total_penalty > 0:
        candidate.duration_ms = float(round(candidate.raw_duration_ms * report.time_multiplier))
        candidate.distance_m = float(round(candidate.raw_distance_m * report.distance_multiplier))
    else:
        candidate.duration_ms = candidate.raw_duration_ms
        candidate.distance_m = candidate.raw_distance_m
    return report
