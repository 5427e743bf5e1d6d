"""Driver progress state machine.

A driver works through its legs strictly in order (pickup before delivery
for every order). Each leg needs a route; routes are fetched asynchronously
and tagged with a per-driver sequence number so that a slow answer to an
old request can never overwrite a newer one.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Iterable, Literal, Optional, Protocol

from ...models.domain import Coordinate, Delivery, DeliveryStatus
from ..routing.models import RouteContext, RouteSelection
from .kinematics import advance

logger = logging.getLogger(__name__)

TargetType = Literal["pickup", "delivery"]

ROUTE_RETRY_DELAY_MS = 1000.0


class DriverPhase(str, Enum):
    IDLE = "idle"
    EN_ROUTE_TO_PICKUP = "en_route_to_pickup"
    AT_PICKUP = "at_pickup"
    EN_ROUTE_TO_DELIVERY = "en_route_to_delivery"
    AT_DELIVERY = "at_delivery"

    @property
    def en_route(self) -> bool:
        return self in (DriverPhase.EN_ROUTE_TO_PICKUP, DriverPhase.EN_ROUTE_TO_DELIVERY)

    @property
    def arrived(self) -> bool:
        return self in (DriverPhase.AT_PICKUP, DriverPhase.AT_DELIVERY)


EN_ROUTE_PHASE: dict[str, DriverPhase] = {
    "pickup": DriverPhase.EN_ROUTE_TO_PICKUP,
    "delivery": DriverPhase.EN_ROUTE_TO_DELIVERY,
}
ARRIVED_PHASE: dict[str, DriverPhase] = {
    "pickup": DriverPhase.AT_PICKUP,
    "delivery": DriverPhase.AT_DELIVERY,
}
COMPLETED_STATUS: dict[str, DeliveryStatus] = {
    "pickup": "picked_up",
    "delivery": "delivered",
}


@dataclass(frozen=True, slots=True)
class Leg:
    order_id: str
    target_type: TargetType
    target: Coordinate


def build_legs(deliveries: Iterable[Delivery]) -> list[Leg]:
    """Expand orders into legs: pickup then delivery, in order.

    Orders already picked up only contribute their delivery leg; delivered
    orders contribute nothing.
    """
    legs: list[Leg] = []
    for delivery in deliveries:
        if delivery.status == "pending":
            legs.append(Leg(delivery.delivery_id, "pickup", delivery.pickup))
        if delivery.status in ("pending", "picked_up"):
            legs.append(Leg(delivery.delivery_id, "delivery", delivery.dropoff))
    return legs


@dataclass(slots=True)
class DriverRuntimeState:
    driver_id: str
    position: Coordinate
    speed_kmh: float
    legs: list[Leg] = field(default_factory=list)
    phase: DriverPhase = DriverPhase.IDLE
    is_moving: bool = False
    leg_index: int = 0
    active_route: list[Coordinate] = field(default_factory=list)
    route_cursor: int = 0
    route_leg_index: Optional[int] = None
    heading: float = 0.0
    route_seq: int = 0
    accepted_seq: int = 0
    last_selection: Optional[RouteSelection] = None
    reroute_count: int = 0
    completed: bool = False

    @property
    def current_leg(self) -> Optional[Leg]:
        if 0 <= self.leg_index < len(self.legs):
            return self.legs[self.leg_index]
        return None

    @property
    def has_route_for_current_leg(self) -> bool:
        return bool(self.active_route) and self.route_leg_index == self.leg_index

    def snapshot(self) -> "DriverRuntimeState":
        return replace(self, legs=list(self.legs), active_route=list(self.active_route))


@dataclass(slots=True)
class RouteRequest:
    seq: int
    leg_index: int
    origin: Coordinate
    target: Coordinate
    reason: str
    future: Optional["Future[RouteSelection]"] = None


class OrderStatusSink(Protocol):
    def mark_order_status(self, order_id: str, status: DeliveryStatus) -> object: ...


RouteSubmitter = Callable[[list[Coordinate], RouteContext], "Future[RouteSelection]"]


class DriverProgressMachine:
    """Owns one driver's runtime state; callers serialise access to it."""

    def __init__(
        self,
        state: DriverRuntimeState,
        *,
        submit: RouteSubmitter,
        order_sink: OrderStatusSink,
        arrival_tolerance_km: float = 0.0,
    ) -> None:
        self.state = state
        self.submit = submit
        self.order_sink = order_sink
        self.arrival_tolerance_km = arrival_tolerance_km
        self.pending: dict[int, RouteRequest] = {}
        self._retry_wait_ms = 0.0
        self._retry_needed = False

    # -- transitions -----------------------------------------------------

    def begin(self) -> None:
        """Idle -> en route to the first leg's target."""
        leg = self.state.current_leg
        if leg is None:
            logger.info(f"Driver {self.state.driver_id} has no pending legs; staying idle")
            return
        self.state.phase = EN_ROUTE_PHASE[leg.target_type]
        self.state.is_moving = True
        self.state.completed = False
        self.request_route("start")

    def request_route(self, reason: str) -> Optional[RouteRequest]:
        leg = self.state.current_leg
        if leg is None:
            return None
        self.state.route_seq += 1
        request = RouteRequest(
            seq=self.state.route_seq,
            leg_index=self.state.leg_index,
            origin=self.state.position,
            target=leg.target,
            reason=reason,
        )
        context = RouteContext(driver_id=self.state.driver_id, leg_index=request.leg_index, reason=reason)
        request.future = self.submit([request.origin, request.target], context)
        self.pending[request.seq] = request
        logger.debug(f"Driver {self.state.driver_id}: route request #{request.seq} ({reason}) to {leg.target_type}")
        return request

    def accept_route(self, request: RouteRequest, selection: RouteSelection) -> bool:
        """Apply a completed route unless it has been superseded."""
        state = self.state
        # only the most recent request for the current leg may be applied
        if request.leg_index != state.leg_index or request.seq != state.route_seq:
            logger.debug(
                f"Driver {state.driver_id}: discarding stale route #{request.seq} "
                f"(leg {request.leg_index}, current leg {state.leg_index}, latest #{state.route_seq})"
            )
            return False

        state.active_route = list(selection.geometry)
        state.route_cursor = 0
        state.route_leg_index = request.leg_index
        state.accepted_seq = request.seq
        state.last_selection = selection
        leg = state.current_leg
        if leg is not None and state.phase != DriverPhase.IDLE:
            state.phase = EN_ROUTE_PHASE[leg.target_type]
        for seq in [seq for seq in self.pending if seq < request.seq]:
            self.pending.pop(seq)
        logger.info(
            f"Driver {state.driver_id}: route #{request.seq} applied ({request.reason}, "
            f"strategy={selection.strategy}, points={len(selection.geometry)}, fallback={selection.fallback})"
        )
        return True

    def on_arrival(self) -> None:
        """Target of the current leg reached: record it and move on."""
        state = self.state
        leg = state.current_leg
        if leg is None:
            self.finish()
            return

        state.phase = ARRIVED_PHASE[leg.target_type]
        try:
            self.order_sink.mark_order_status(leg.order_id, COMPLETED_STATUS[leg.target_type])
        except (KeyError, ValueError) as exc:
            logger.warning(f"Driver {state.driver_id}: could not update order {leg.order_id}: {exc}")
        logger.info(f"Driver {state.driver_id} reached {leg.target_type} of order {leg.order_id}")

        state.leg_index += 1
        self._drop_pending()
        if state.current_leg is None:
            self.finish()
            return
        self.request_route("leg_transition")

    def on_disruption(self, zone_id: str) -> bool:
        """Re-select the route from the live position after a hazard change."""
        state = self.state
        if not (state.phase.en_route or state.phase.arrived) or state.current_leg is None:
            return False
        state.reroute_count += 1
        self.request_route(f"hazard:{zone_id}")
        return True

    def finish(self) -> None:
        state = self.state
        self._drop_pending()
        state.phase = DriverPhase.IDLE
        state.is_moving = False
        state.completed = True
        logger.info(f"Driver {state.driver_id} completed all legs")

    def stop(self) -> None:
        state = self.state
        self._drop_pending()
        state.phase = DriverPhase.IDLE
        state.is_moving = False
        state.active_route = []
        state.route_cursor = 0
        state.route_leg_index = None

    # -- per-tick work ---------------------------------------------------

    def collect_routes(self) -> None:
        for seq in sorted(self.pending):
            request = self.pending.get(seq)
            if request is None or request.future is None or not request.future.done():
                continue
            self.pending.pop(seq)
            if request.future.cancelled():
                continue
            error = request.future.exception()
            if error is not None:
                logger.warning(f"Driver {self.state.driver_id}: route request #{seq} failed: {error}")
                if seq == self.state.route_seq:
                    self._retry_wait_ms = ROUTE_RETRY_DELAY_MS
                    self._retry_needed = True
                continue
            self.accept_route(request, request.future.result())

    def step(self, delta_ms: float) -> None:
        state = self.state
        self.collect_routes()
        if state.phase == DriverPhase.IDLE:
            return

        if (self._retry_needed or not state.has_route_for_current_leg) and not self.pending:
            self._retry_wait_ms -= delta_ms
            if self._retry_wait_ms <= 0:
                self._retry_wait_ms = 0.0
                self._retry_needed = False
                self.request_route("retry")

        if not state.is_moving or not state.has_route_for_current_leg:
            return

        budget = float(delta_ms)
        route = state.active_route
        while budget > 0 and state.route_cursor < len(route):
            move = advance(
                state.position,
                route[state.route_cursor],
                state.speed_kmh,
                budget,
                previous_heading=state.heading,
                arrival_tolerance_km=self.arrival_tolerance_km,
            )
            state.position = move.position
            if move.travelled_km > 0:
                state.heading = move.heading
            if not move.arrived:
                break
            state.route_cursor += 1
            budget -= move.used_ms

        if state.route_cursor >= len(route):
            self.on_arrival()

    def _drop_pending(self) -> None:
        for request in self.pending.values():
            if request.future is not None:
                request.future.cancel()
        self.pending.clear()
