"""Campus helpers — map room codes to configured building addresses.

Room strings look like "пр-123" or "<b>ПК-401</b>"; the two letters before
the hyphen name the building.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Iterable

from smart_alarm.core.schedule_normalizer import strip_tags
from smart_alarm.core.time_parser import minutes_of_day, parse_time_to_minutes
from smart_alarm.data.models import CampusAddress, Lesson

logger = logging.getLogger(__name__)

CAMPUS_CODES: frozenset[str] = frozenset({"пр", "пк", "ав", "бс"})

LESSON_LENGTH_MINUTES = 90

_PREFIX_RE = re.compile(r"^(\w{2})-")


def extract_campus_code(
    room: str | None, codes: Iterable[str] = CAMPUS_CODES,
) -> str | None:
    """Return the campus code of a room string, or None if unknown."""
    if not room or not isinstance(room, str):
        return None

    clean = strip_tags(room).strip().lower()
    match = _PREFIX_RE.match(clean)
    if match and match.group(1) in codes:
        return match.group(1)
    return None


def get_campus_address(
    code: str | None,
    campus_addresses: Iterable[CampusAddress | dict] | None,
) -> str | None:
    """Look up the configured address for ``code``; None if unknown or blank."""
    if not code or not campus_addresses:
        return None

    for campus in campus_addresses:
        if isinstance(campus, dict):
            campus_code, address = campus.get("code"), campus.get("address")
        else:
            campus_code, address = campus.code, campus.address
        if campus_code == code:
            if address and address.strip():
                return address
            break

    logger.info("No address configured for campus %r", code)
    return None


def get_next_campus(
    day_schedule: list[Lesson] | None, now: datetime,
) -> str | None:
    """Campus of the first lesson that has not finished yet.

    Falls back to the first lesson of the day with a resolvable code.
    """
    if not day_schedule:
        return None

    current = minutes_of_day(now)
    for lesson in day_schedule:
        if not lesson.time or not lesson.room:
            continue
        start = parse_time_to_minutes(lesson.time)
        if start == 0:
            continue
        if start + LESSON_LENGTH_MINUTES >= current:
            code = extract_campus_code(lesson.room)
            if code:
                logger.debug("Next campus %s (room %s, %s)", code, lesson.room, lesson.time)
                return code

    for lesson in day_schedule:
        code = extract_campus_code(lesson.room)
        if code:
            logger.debug("Using first campus of the day: %s (room %s)", code, lesson.room)
            return code

    return None
