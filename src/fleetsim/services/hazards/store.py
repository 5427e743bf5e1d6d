"""In-memory store for operator-defined hazard zones."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from ...models.domain import HazardZone

logger = logging.getLogger(__name__)

HazardListener = Callable[[str], None]


class HazardZoneStore:
    """Thread-safe hazard registry.

    Readers always get immutable snapshots, so a scoring pass never sees a
    zone change state half way through comparing candidates. Listeners are
    told about every create/toggle, which is how running simulations learn
    they have to reroute.
    """

    def __init__(self) -> None:
        self._zones: dict[str, HazardZone] = {}
        self._lock = threading.Lock()
        self._listeners: list[HazardListener] = []
        self._counter = 0

    def subscribe(self, listener: HazardListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: HazardListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _next_id(self) -> str:
        # W001, W002, ... skipping ids the operator already claimed
        while True:
            self._counter += 1
            candidate = f"W{self._counter:03d}"
            if candidate not in self._zones:
                return candidate

    def create(
        self,
        *,
        kind: str,
        latitude: float,
        longitude: float,
        radius_km: float,
        zone_id: Optional[str] = None,
        active: bool = True,
    ) -> HazardZone:
        if radius_km <= 0:
            raise ValueError("Hazard radius must be greater than zero.")
        if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
            raise ValueError(f"Hazard centre ({latitude}, {longitude}) is not a valid coordinate.")
        if not kind or not kind.strip():
            raise ValueError("Hazard kind is required.")

        with self._lock:
            if zone_id is None:
                zone_id = self._next_id()
            elif zone_id in self._zones:
                raise ValueError(f"Hazard zone '{zone_id}' already exists.")
            zone = HazardZone(
                zone_id=zone_id,
                kind=kind.strip(),
                latitude=latitude,
                longitude=longitude,
                radius_km=radius_km,
                active=active,
            )
            self._zones[zone_id] = zone

        logger.info(
            f"Hazard {zone.zone_id} created: kind={zone.kind} ({zone.severity_class}), "
            f"radius={zone.radius_km}km, active={zone.active}"
        )
        self._notify(zone.zone_id)
        return zone

    def toggle(self, zone_id: str) -> HazardZone:
        with self._lock:
            current = self._zones.get(zone_id)
            if current is None:
                raise KeyError(zone_id)
            updated = replace(current, active=not current.active)
            self._zones[zone_id] = updated

        logger.info(f"Hazard {zone_id} toggled: active={updated.active}")
        self._notify(zone_id)
        return updated

    def get(self, zone_id: str) -> HazardZone:
        with self._lock:
            zone = self._zones.get(zone_id)
        if zone is None:
            raise KeyError(zone_id)
        return zone

    def list_all(self) -> tuple[HazardZone, ...]:
        with self._lock:
            return tuple(self._zones.values())

    def list_active(self) -> tuple[HazardZone, ...]:
        with self._lock:
            return tuple(zone for zone in self._zones.values() if zone.active)

    def _notify(self, zone_id: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(zone_id)
            except Exception:
                logger.exception(f"Hazard listener failed for zone {zone_id}")
