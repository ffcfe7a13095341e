"""Schedule port — abstract interface for the raw university timetable feed."""

from __future__ import annotations

from typing import Any, Protocol


class ScheduleFetchError(Exception):
    """Raised when the timetable feed cannot be fetched or decoded."""


class ScheduleSource(Protocol):
    """Abstract timetable source used by the planner.

    Returns the raw feed, shaped ``{"grid": {day: {slot: [lesson, ...]}}}``.
    """

    async def fetch_schedule(self, group_number: str) -> dict[str, Any]: ...
