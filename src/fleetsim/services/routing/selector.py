"""Pick one winner from a set of scored candidates."""

from __future__ import annotations

from typing import Sequence

from .models import RouteCandidate


def selection_key(candidate: RouteCandidate) -> tuple[float, float]:
    # penalty first; raw provider time only breaks ties between equally penalised routes
    return (candidate.total_penalty, candidate.raw_duration_ms)


def select_best(candidates: Sequence[RouteCandidate]) -> RouteCandidate:
    """Lowest penalty wins, then lowest raw duration, then the first one seen."""

    if not candidates:
        raise ValueError("Cannot select a route from an empty candidate set.")
    return min(candidates, key=selection_key)
