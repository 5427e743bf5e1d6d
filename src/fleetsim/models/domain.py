"""Domain models for drivers, deliveries and hazard zones."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

Coordinate = tuple[float, float]
"""(latitude, longitude) in degrees, WGS84."""

DeliveryStatus = Literal["pending", "picked_up", "delivered"]
SeverityClass = Literal["storm", "traffic", "light", "other"]

# Operator-entered hazard kinds grouped by how hard they hit a route.
_SEVERITY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "storm": ("storm", "thunder", "lightning", "cyclone", "hurricane", "typhoon", "flood", "hail", "blizzard", "tornado"),
    "traffic": ("traffic", "congestion", "jam", "accident", "closure", "roadwork", "construction"),
    "light": ("light", "drizzle", "fog", "mist", "wind", "shower"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def classify_hazard_kind(kind: str | None) -> SeverityClass:
    """Map a free-text hazard kind onto its severity class."""

    normalized = (kind or "").strip().lower()
    if not normalized:
        return "other"
    # light-disruption words win over the generic ones ("light rain", "light traffic")
    if normalized.split()[0] == "light":
        return "light"
    for severity in ("storm", "traffic", "light"):
        if any(keyword in normalized for keyword in _SEVERITY_KEYWORDS[severity]):
            return severity  # type: ignore[return-value]
    return "other"


@dataclass(slots=True)
class Driver:
    """A delivery driver as registered by the operator."""

    driver_id: str
    name: str
    latitude: float
    longitude: float
    status: str = "available"
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def position(self) -> Coordinate:
        return (self.latitude, self.longitude)


@dataclass(slots=True)
class Delivery:
    """A delivery order: one pickup point and one drop-off point."""

    delivery_id: str
    driver_id: Optional[str]
    pickup_latitude: float
    pickup_longitude: float
    delivery_latitude: float
    delivery_longitude: float
    status: DeliveryStatus = "pending"
    estimated_duration_ms: Optional[float] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def pickup(self) -> Coordinate:
        return (self.pickup_latitude, self.pickup_longitude)

    @property
    def dropoff(self) -> Coordinate:
        return (self.delivery_latitude, self.delivery_longitude)


@dataclass(frozen=True, slots=True)
class HazardZone:
    """Circular operator-defined disruption ("weather event")."""

    zone_id: str
    kind: str
    latitude: float
    longitude: float
    radius_km: float
    active: bool = True
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def center(self) -> Coordinate:
        return (self.latitude, self.longitude)

    @property
    def severity_class(self) -> SeverityClass:
        return classify_hazard_kind(self.kind)
