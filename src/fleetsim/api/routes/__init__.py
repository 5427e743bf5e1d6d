"""Route group exports."""

from . import deliveries, drivers, hazards, health, metrics, routes, simulation

__all__ = ["health", "drivers", "deliveries", "hazards", "routes", "simulation", "metrics"]
