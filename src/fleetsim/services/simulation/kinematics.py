"""Kinematic interpolation of a driver towards the next route vertex."""

from __future__ import annotations

from dataclasses import dataclass

from ...models.domain import Coordinate
from ..geospatial import bearing_degrees, destination_point, distance_km

MS_PER_HOUR = 3_600_000.0


@dataclass(frozen=True, slots=True)
class MovementStep:
    position: Coordinate
    heading: float
    arrived: bool
    travelled_km: float
    used_ms: float


def step_distance_km(speed_kmh: float, tick_ms: float) -> float:
    return speed_kmh * tick_ms / MS_PER_HOUR


def advance(
    current: Coordinate,
    target: Coordinate,
    speed_kmh: float,
    tick_ms: float,
    *,
    previous_heading: float = 0.0,
    arrival_tolerance_km: float = 0.0,
) -> MovementStep:
    """Move from ``current`` towards ``target`` for one tick.

    The step follows the great circle from the current position, so the
    result is not distorted at high latitudes the way a lat/lon blend is.
    When the tick covers the remaining distance the position snaps exactly
    onto ``target`` and ``used_ms`` reports how much of the tick that took.
    """
    remaining = distance_km(current, target)
    if remaining == 0.0:
        return MovementStep(position=target, heading=previous_heading, arrived=True, travelled_km=0.0, used_ms=0.0)
    if speed_kmh <= 0 or tick_ms <= 0:
        return MovementStep(position=current, heading=previous_heading, arrived=False, travelled_km=0.0, used_ms=0.0)

    reach = step_distance_km(speed_kmh, tick_ms)
    heading = bearing_degrees(current[0], current[1], target[0], target[1])
    if reach >= remaining:
        return MovementStep(
            position=target,
            heading=heading,
            arrived=True,
            travelled_km=remaining,
            used_ms=remaining / speed_kmh * MS_PER_HOUR,
        )

    position = destination_point(current[0], current[1], heading, reach)
    heading = bearing_degrees(current[0], current[1], position[0], position[1])
    if remaining - reach <= arrival_tolerance_km:
        return MovementStep(position=target, heading=heading, arrived=True, travelled_km=remaining, used_ms=tick_ms)
    return MovementStep(position=position, heading=heading, arrived=False, travelled_km=reach, used_ms=tick_ms)
