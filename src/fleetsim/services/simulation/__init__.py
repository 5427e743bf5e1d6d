"""Driver movement simulation."""

from .clock import SimulationClock
from .engine import SimulationEngine
from .kinematics import MovementStep, advance
from .state_machine import DriverPhase, DriverProgressMachine, DriverRuntimeState, Leg, RouteRequest, build_legs

__all__ = [
    "SimulationClock",
    "SimulationEngine",
    "MovementStep",
    "advance",
    "DriverPhase",
    "DriverProgressMachine",
    "DriverRuntimeState",
    "Leg",
    "RouteRequest",
    "build_legs",
]
