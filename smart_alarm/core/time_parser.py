"""Time-string parsing for timetable slots and alarm output.

Timetable strings arrive in many shapes ("09:00-10:30", "09:00 - 10:30",
"<b>9:00</b>", "до 09:05, потом 10:00"). Only the first H:MM / HH:MM
occurrence matters: that is the start of the slot.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})")


def _first_time(text: str | None) -> tuple[int, int] | None:
    if not text:
        return None
    match = _TIME_RE.search(text)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def parse_time_to_minutes(text: str | None) -> int:
    """Return minutes since midnight of the first time found in ``text``.

    Returns 0 when nothing matches. Callers treat 0 as "earliest possible
    slot", not as a parse failure.
    """
    found = _first_time(text)
    if found is None:
        return 0
    hour, minute = found
    return hour * 60 + minute


def parse_time_to_datetime(text: str | None, base: datetime) -> datetime | None:
    """Apply the first time found in ``text`` to a copy of ``base``.

    Seconds and microseconds are zeroed. Returns None when nothing matches
    or the hour/minute is out of range.
    """
    found = _first_time(text)
    if found is None:
        return None
    hour, minute = found
    try:
        return base.replace(hour=hour, minute=minute, second=0, microsecond=0)
    except ValueError:
        logger.warning("Time out of range in %r", text)
        return None


def format_time(value: datetime | None) -> str:
    """Format as HH:MM; empty string for None."""
    if value is None:
        return ""
    return value.strftime("%H:%M")


def minutes_of_day(value: datetime) -> int:
    return value.hour * 60 + value.minute


def start_time(text: str | None) -> str:
    """Return the start part of a time range ("09:00-10:30" → "09:00")."""
    if not text:
        return ""
    return re.split(r"\s*-\s*|\s+", text.strip(), maxsplit=1)[0]
