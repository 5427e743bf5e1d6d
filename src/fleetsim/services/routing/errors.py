"""Routing error taxonomy."""

from __future__ import annotations


class RoutingError(Exception):
    """Base class for routing failures the core recovers from."""


class ProviderUnavailable(RoutingError):
    """A routing query could not be completed by the provider."""

    def __init__(self, message: str, *, strategy: str | None = None) -> None:
        super().__init__(message)
        self.strategy = strategy


class GeometryUnparseable(RoutingError):
    """The provider returned path geometry in a shape we do not understand."""
