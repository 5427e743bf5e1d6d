from concurrent.futures import Future

from fleetsim.models.domain import Delivery
from fleetsim.services.geospatial import destination_point
from fleetsim.services.routing.models import RouteSelection
from fleetsim.services.simulation.state_machine import (
    DriverPhase,
    DriverProgressMachine,
    DriverRuntimeState,
    build_legs,
)

START = (18.52, 73.86)
PICKUP = destination_point(START[0], START[1], 90.0, 0.05)
DROPOFF = destination_point(PICKUP[0], PICKUP[1], 0.0, 0.05)


class ManualRouter:
    """Collects route requests; the test decides when each one completes."""

    def __init__(self):
        self.requests = []

    def submit(self, waypoints, context):
        future = Future()
        self.requests.append((list(waypoints), context, future))
        return future

    def resolve(self, index, geometry=None):
        waypoints, _, future = self.requests[index]
        future.set_result(
            RouteSelection(geometry=geometry or waypoints, distance_m=0.0, duration_ms=0.0, strategy="direct")
        )


class RecordingSink:
    def __init__(self):
        self.updates = []

    def mark_order_status(self, order_id, status):
        self.updates.append((order_id, status))


def _delivery(delivery_id: str, status: str = "pending") -> Delivery:
    return Delivery(
        delivery_id=delivery_id,
        driver_id="D1",
        pickup_latitude=PICKUP[0],
        pickup_longitude=PICKUP[1],
        delivery_latitude=DROPOFF[0],
        delivery_longitude=DROPOFF[1],
        status=status,
    )


def _machine(deliveries=None):
    router = ManualRouter()
    sink = RecordingSink()
    state = DriverRuntimeState(
        driver_id="D1",
        position=START,
        speed_kmh=50.0,
        legs=build_legs(deliveries if deliveries is not None else [_delivery("O1")]),
    )
    machine = DriverProgressMachine(state, submit=router.submit, order_sink=sink, arrival_tolerance_km=0.01)
    return machine, router, sink


def test_build_legs_orders_pickup_before_delivery():
    legs = build_legs([_delivery("O1"), _delivery("O2", "picked_up"), _delivery("O3", "delivered")])

    assert [(leg.order_id, leg.target_type) for leg in legs] == [
        ("O1", "pickup"),
        ("O1", "delivery"),
        ("O2", "delivery"),
    ]


def test_begin_requests_route_to_first_pickup():
    machine, router, _ = _machine()

    machine.begin()

    assert machine.state.phase == DriverPhase.EN_ROUTE_TO_PICKUP
    assert machine.state.is_moving
    waypoints, context, _ = router.requests[0]
    assert waypoints == [START, PICKUP]
    assert context.leg_index == 0
    assert context.reason == "start"


def test_begin_without_legs_stays_idle():
    machine, router, _ = _machine(deliveries=[])
    machine.begin()
    assert machine.state.phase == DriverPhase.IDLE
    assert router.requests == []


def test_driver_does_not_move_until_route_arrives():
    machine, _, _ = _machine()
    machine.begin()

    machine.step(1000)

    assert machine.state.position == START


def test_full_run_visits_pickup_then_dropoff():
    machine, router, sink = _machine()
    machine.begin()
    router.resolve(0)

    for _ in range(100):
        machine.step(1000)
        if machine.state.phase == DriverPhase.AT_PICKUP:
            break
    assert machine.state.phase == DriverPhase.AT_PICKUP
    assert machine.state.position == PICKUP
    assert machine.state.leg_index == 1
    assert sink.updates == [("O1", "picked_up")]

    waypoints, context, _ = router.requests[1]
    assert waypoints == [PICKUP, DROPOFF]
    assert context.reason == "leg_transition"
    router.resolve(1)

    for _ in range(100):
        machine.step(1000)
        if machine.state.completed:
            break
    assert machine.state.completed
    assert machine.state.phase == DriverPhase.IDLE
    assert not machine.state.is_moving
    assert machine.state.position == DROPOFF
    assert sink.updates == [("O1", "picked_up"), ("O1", "delivered")]


def test_disruption_reroutes_from_live_position_without_losing_progress():
    machine, router, sink = _machine()
    machine.begin()
    router.resolve(0)
    machine.step(1000)
    moved_to = machine.state.position
    assert moved_to != START

    assert machine.on_disruption("W001")

    waypoints, context, _ = router.requests[1]
    assert waypoints == [moved_to, PICKUP]
    assert context.reason == "hazard:W001"
    assert machine.state.leg_index == 0
    assert machine.state.reroute_count == 1
    assert sink.updates == []

    detour = [moved_to, (moved_to[0] + 0.0002, moved_to[1]), PICKUP]
    router.resolve(1, geometry=detour)
    machine.step(0)

    assert machine.state.active_route == detour
    assert machine.state.route_cursor == 0
    assert machine.state.accepted_seq == 2
    assert machine.state.phase == DriverPhase.EN_ROUTE_TO_PICKUP


def test_keeps_following_old_route_while_reroute_is_pending():
    machine, router, _ = _machine()
    machine.begin()
    router.resolve(0)
    machine.step(100)
    before = machine.state.position

    machine.on_disruption("W001")
    machine.step(100)

    assert machine.state.position != before
    assert machine.state.accepted_seq == 1


def test_older_response_never_overwrites_newer_one():
    machine, router, _ = _machine()
    machine.begin()
    router.resolve(0)
    machine.step(0)

    machine.on_disruption("W001")
    older = machine.pending[2]
    machine.on_disruption("W002")
    newest = [START, (18.5201, 73.8601), PICKUP]
    router.resolve(2, geometry=newest)
    machine.step(0)
    assert machine.state.accepted_seq == 3

    router.resolve(1, geometry=[START, (18.6, 73.9), PICKUP])
    assert machine.accept_route(older, older.future.result()) is False
    machine.step(0)

    assert machine.state.active_route == newest
    assert machine.state.accepted_seq == 3


def test_superseded_reroute_finishing_first_is_discarded():
    machine, router, _ = _machine()
    machine.begin()
    router.resolve(0)
    machine.step(0)
    original = list(machine.state.active_route)

    machine.on_disruption("W001")
    machine.on_disruption("W002")
    router.resolve(1, geometry=[START, (18.6, 73.9), PICKUP])
    machine.step(0)

    assert machine.state.active_route == original
    assert machine.state.accepted_seq == 1
    assert list(machine.pending) == [3]

    newest = [START, (18.5201, 73.8601), PICKUP]
    router.resolve(2, geometry=newest)
    machine.step(0)

    assert machine.state.active_route == newest
    assert machine.state.accepted_seq == 3


def test_failed_reroute_is_retried_while_following_old_route():
    machine, router, _ = _machine()
    machine.begin()
    router.resolve(0)
    machine.step(0)

    machine.on_disruption("W001")
    router.requests[1][2].set_exception(RuntimeError("provider down"))
    machine.step(100)
    assert len(router.requests) == 2

    machine.step(1000)
    assert len(router.requests) == 3
    assert router.requests[2][1].reason == "retry"


def test_response_for_a_finished_leg_is_discarded():
    machine, router, sink = _machine()
    machine.begin()
    router.resolve(0)
    machine.step(0)
    machine.on_disruption("W001")
    stale_request = machine.pending[2]

    for _ in range(100):
        machine.step(1000)
        if machine.state.leg_index == 1:
            break
    assert machine.state.leg_index == 1

    selection = RouteSelection(geometry=[START, PICKUP], distance_m=0, duration_ms=0, strategy="direct")
    assert machine.accept_route(stale_request, selection) is False
    assert machine.state.route_leg_index == 0


def test_disruption_while_idle_is_ignored():
    machine, router, _ = _machine()
    assert machine.on_disruption("W001") is False
    assert router.requests == []


def test_failed_route_request_is_retried():
    machine, router, _ = _machine()
    machine.begin()
    router.requests[0][2].set_exception(RuntimeError("worker crashed"))

    machine.step(100)
    assert len(router.requests) == 1

    machine.step(1000)
    assert len(router.requests) == 2
    assert router.requests[1][1].reason == "retry"


def test_stop_clears_route_and_pending_requests():
    machine, router, _ = _machine()
    machine.begin()

    machine.stop()

    assert machine.state.phase == DriverPhase.IDLE
    assert machine.state.active_route == []
    assert machine.pending == {}
    assert router.requests[0][2].cancelled()


def test_resume_after_pickup_goes_straight_to_delivery():
    machine, router, _ = _machine(deliveries=[_delivery("O1", "picked_up")])
    machine.begin()
    assert machine.state.phase == DriverPhase.EN_ROUTE_TO_DELIVERY
    assert router.requests[0][0] == [START, DROPOFF]
