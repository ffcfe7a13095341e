"""Route port — abstract interface for travel-time estimates.

Core modules depend on this protocol, never on a specific routing provider.
"""

from __future__ import annotations

from typing import Protocol

from smart_alarm.data.models import RouteResult


class RouteError(Exception):
    """Raised when a route cannot be built (geocoding, routing, network)."""


class RouteProvider(Protocol):
    """Abstract routing interface used by the planner."""

    async def build_route(
        self, origin: str, destination: str, mode: str = "transit",
    ) -> RouteResult: ...
