"""Simulation engine: owns every driver's progress machine."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from ...config import settings
from ...models.domain import Coordinate, Delivery, DeliveryStatus, Driver
from ..routing.models import RouteContext, RouteSelection
from .state_machine import DriverPhase, DriverProgressMachine, DriverRuntimeState, build_legs

logger = logging.getLogger(__name__)


class RouteSelector(Protocol):
    def select_route(
        self, waypoints: Sequence[Coordinate], context: RouteContext | None = None, *, optimize: bool = False
    ) -> RouteSelection: ...


class FleetSource(Protocol):
    def get_driver(self, driver_id: str) -> Driver: ...

    def deliveries_for_driver(self, driver_id: str) -> list[Delivery]: ...

    def mark_order_status(self, order_id: str, status: DeliveryStatus) -> Delivery: ...


@dataclass
class _DriverSlot:
    machine: DriverProgressMachine
    lock: threading.Lock = field(default_factory=threading.Lock)


class SimulationEngine:
    """Advances simulated drivers and keeps their routes current.

    Each driver has exactly one writer at a time: every mutation of a
    driver's state happens under that driver's lock. Route selection runs on
    a worker pool and its results are picked up on the driver's next tick.
    """

    def __init__(
        self,
        route_service: RouteSelector,
        fleet: FleetSource,
        *,
        executor: ThreadPoolExecutor | None = None,
        default_speed_kmh: float | None = None,
        arrival_tolerance_km: float | None = None,
        worker_threads: int | None = None,
    ) -> None:
        self.route_service = route_service
        self.fleet = fleet
        self.default_speed_kmh = (
            default_speed_kmh if default_speed_kmh is not None else settings.default_speed_kmh
        )
        self.arrival_tolerance_km = (
            arrival_tolerance_km if arrival_tolerance_km is not None else settings.arrival_tolerance_km
        )
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=worker_threads or settings.route_worker_threads,
            thread_name_prefix="route-select",
        )
        self._slots: dict[str, _DriverSlot] = {}
        self._registry_lock = threading.Lock()

    def _submit_route(self, waypoints: list[Coordinate], context: RouteContext) -> "Future[RouteSelection]":
        return self._executor.submit(self.route_service.select_route, waypoints, context)

    def _slot(self, driver_id: str) -> _DriverSlot:
        with self._registry_lock:
            try:
                return self._slots[driver_id]
            except KeyError:
                raise KeyError(f"Driver {driver_id} has no simulation state") from None

    def _find_slot(self, driver_id: str) -> Optional[_DriverSlot]:
        with self._registry_lock:
            return self._slots.get(driver_id)

    def _idle_state(self, driver_id: str) -> DriverRuntimeState:
        """State of a known driver that has never been simulated."""
        driver = self.fleet.get_driver(driver_id)
        legs = build_legs(self.fleet.deliveries_for_driver(driver_id))
        return DriverRuntimeState(
            driver_id=driver_id, position=driver.position, speed_kmh=self.default_speed_kmh, legs=legs
        )

    def _all_slots(self) -> list[tuple[str, _DriverSlot]]:
        with self._registry_lock:
            return list(self._slots.items())

    def start(self, driver_id: str, speed_kmh: float | None = None) -> DriverRuntimeState:
        """Begin (or resume) simulating ``driver_id`` over its open orders.

        Starting a driver that is already moving is a no-op. A driver with no
        open orders stays idle.
        """
        driver = self.fleet.get_driver(driver_id)
        if speed_kmh is not None and speed_kmh <= 0:
            raise ValueError("Speed must be positive.")

        with self._registry_lock:
            existing = self._slots.get(driver_id)
        if existing is not None:
            with existing.lock:
                if existing.machine.state.phase != DriverPhase.IDLE:
                    return existing.machine.state.snapshot()
                position = existing.machine.state.position
                speed = speed_kmh or existing.machine.state.speed_kmh
        else:
            position = driver.position
            speed = speed_kmh or self.default_speed_kmh

        legs = build_legs(self.fleet.deliveries_for_driver(driver_id))
        state = DriverRuntimeState(driver_id=driver_id, position=position, speed_kmh=speed, legs=legs)
        machine = DriverProgressMachine(
            state,
            submit=self._submit_route,
            order_sink=self.fleet,
            arrival_tolerance_km=self.arrival_tolerance_km,
        )
        slot = _DriverSlot(machine)
        with slot.lock:
            with self._registry_lock:
                self._slots[driver_id] = slot
            machine.begin()
            logger.info(f"Simulation started for driver {driver_id}: {len(legs)} legs at {speed} km/h")
            return state.snapshot()

    def stop(self, driver_id: str) -> DriverRuntimeState:
        slot = self._find_slot(driver_id)
        if slot is None:
            return self._idle_state(driver_id)
        with slot.lock:
            slot.machine.stop()
            logger.info(f"Simulation stopped for driver {driver_id}")
            return slot.machine.state.snapshot()

    def tick(self, driver_id: str, delta_ms: float) -> DriverRuntimeState:
        if delta_ms < 0:
            raise ValueError("Tick duration cannot be negative.")
        slot = self._find_slot(driver_id)
        if slot is None:
            return self._idle_state(driver_id)
        with slot.lock:
            slot.machine.step(delta_ms)
            return slot.machine.state.snapshot()

    def tick_all(self, delta_ms: float) -> int:
        """Advance every active driver; returns how many were ticked."""
        ticked = 0
        for driver_id, slot in self._all_slots():
            with slot.lock:
                if slot.machine.state.phase == DriverPhase.IDLE:
                    continue
                try:
                    slot.machine.step(delta_ms)
                except Exception:
                    logger.exception(f"Tick failed for driver {driver_id}")
                    continue
            ticked += 1
        return ticked

    def on_hazard_changed(self, zone_id: str) -> list[str]:
        """Reroute every driver that is travelling or waiting for its next route."""
        rerouted = []
        for driver_id, slot in self._all_slots():
            with slot.lock:
                if slot.machine.on_disruption(zone_id):
                    rerouted.append(driver_id)
        if rerouted:
            logger.info(f"Hazard {zone_id} changed; rerouting drivers {', '.join(rerouted)}")
        return rerouted

    def set_speed(self, driver_id: str, speed_kmh: float) -> DriverRuntimeState:
        if speed_kmh <= 0:
            raise ValueError("Speed must be positive.")
        slot = self._slot(driver_id)
        with slot.lock:
            slot.machine.state.speed_kmh = float(speed_kmh)
            return slot.machine.state.snapshot()

    def get_state(self, driver_id: str) -> DriverRuntimeState:
        """Live state, or an idle snapshot for a driver that was never started."""
        slot = self._find_slot(driver_id)
        if slot is None:
            return self._idle_state(driver_id)
        with slot.lock:
            return slot.machine.state.snapshot()

    def list_states(self) -> list[DriverRuntimeState]:
        states = []
        for _, slot in self._all_slots():
            with slot.lock:
                states.append(slot.machine.state.snapshot())
        return states

    def wait_for_routes(self, driver_id: str, timeout: Optional[float] = None) -> bool:
        """Block until the driver's outstanding route requests finish."""
        slot = self._find_slot(driver_id)
        if slot is None:
            self.fleet.get_driver(driver_id)
            return True
        with slot.lock:
            futures = [req.future for req in slot.machine.pending.values() if req.future is not None]
        if not futures:
            return True
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
