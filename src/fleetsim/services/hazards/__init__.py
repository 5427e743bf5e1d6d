"""Hazard zone services."""

from .store import HazardListener, HazardZoneStore

__all__ = ["HazardZoneStore", "HazardListener"]
