"""
Smart Alarm — Schedule Normalizer.

Turns the university feed's nested ``grid`` (day → slot → lesson list) into
a weekly schedule of normalized lessons, dropping entries whose module
validity window does not cover "now" and merging the user's custom lessons.

Feed shape (rasp.dmami.ru):

    {
      "grid": {
        "1": {                 # weekday, 1 = Monday
          "1": [{...}, ...],   # slot number, 1 = 09:00-10:30
          "2": [...],
        },
        ...
      }
    }

Each lesson entry carries ``sbj``, ``type``, ``teacher``, ``shortRooms``,
``auditories`` (``[{"title": "<b>...</b>"}]``), and an optional ``df``/``dt``
validity window. Any of them may be missing or blank.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Sequence

from smart_alarm.data.models import CustomLesson, Lesson, WeeklySchedule

logger = logging.getLogger(__name__)

# Standard bell schedule: slot number → display time
LESSON_TIMES: Mapping[int, str] = MappingProxyType({
    1: "09:00-10:30",
    2: "10:40-12:10",
    3: "12:20-13:50",
    4: "14:30-16:00",
    5: "16:10-17:40",
    6: "17:50-19:20",
    7: "19:30-21:00",
})

DEFAULT_SUBJECT = "Неизвестный предмет"
DEFAULT_TYPE = "Занятие"
DEFAULT_PROFESSOR = "Преподаватель не указан"
DEFAULT_ROOM = "Аудитория не указана"

_TAG_RE = re.compile(r"<[^>]*>")


def strip_tags(text: str) -> str:
    return _TAG_RE.sub("", text)


# ---------------------------------------------------------------------------
# Room extraction rules
# ---------------------------------------------------------------------------

RoomRule = Callable[[Mapping[str, Any]], "str | None"]


def _first_item(value: Any) -> Any:
    if isinstance(value, (list, tuple)) and value:
        return value[0]
    return None


def _room_from_short_rooms(lesson: Mapping[str, Any]) -> str | None:
    first = _first_item(lesson.get("shortRooms"))
    return first if isinstance(first, str) else None


def _room_from_auditories(lesson: Mapping[str, Any]) -> str | None:
    first = _first_item(lesson.get("auditories"))
    if isinstance(first, dict) and isinstance(first.get("title"), str):
        return strip_tags(first["title"])
    return None


def _room_from_plain_field(name: str) -> RoomRule:
    def rule(lesson: Mapping[str, Any]) -> str | None:
        value = lesson.get(name)
        return value if isinstance(value, str) else None

    rule.__name__ = f"_room_from_{name}"
    return rule


# Evaluated in order; the first non-blank result wins.
ROOM_RULES: tuple[RoomRule, ...] = (
    _room_from_short_rooms,
    _room_from_auditories,
    _room_from_plain_field("aud"),
    _room_from_plain_field("auditoria"),
)


def resolve_room(
    lesson: Mapping[str, Any], rules: Sequence[RoomRule] = ROOM_RULES,
) -> str:
    for rule in rules:
        room = rule(lesson)
        if room and room.strip():
            return room.strip()
    return DEFAULT_ROOM


# ---------------------------------------------------------------------------
# Validity window
# ---------------------------------------------------------------------------


def _parse_date(value: Any) -> date | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    except ValueError:
        logger.warning("Unparseable module date %r, ignoring", value)
        return None


def is_within_window(lesson: Mapping[str, Any], now: datetime) -> bool:
    """True when ``now`` falls inside the lesson's [df, dt] window (inclusive).

    A missing or unparseable bound leaves that side open.
    """
    today = now.date()
    date_from = _parse_date(lesson.get("df"))
    date_to = _parse_date(lesson.get("dt"))
    if date_from is not None and today < date_from:
        return False
    if date_to is not None and today > date_to:
        return False
    return True


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _text_or_default(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _slot_number(slot_key: Any) -> int | None:
    try:
        return int(slot_key)
    except (TypeError, ValueError):
        return None


def normalize_lesson(
    entry: Mapping[str, Any],
    day_key: str,
    slot_key: str,
    index: int,
    slot_times: Mapping[int, str] = LESSON_TIMES,
    room_rules: Sequence[RoomRule] = ROOM_RULES,
) -> Lesson:
    slot = _slot_number(slot_key)
    return Lesson(
        id=f"{day_key}-{slot_key}-{index}",
        time=slot_times.get(slot, "") if slot is not None else "",
        subject=_text_or_default(entry.get("sbj"), DEFAULT_SUBJECT),
        type=_text_or_default(entry.get("type"), DEFAULT_TYPE),
        room=resolve_room(entry, room_rules),
        professor=_text_or_default(entry.get("teacher"), DEFAULT_PROFESSOR),
        lesson_number=slot if slot is not None else 0,
        date_from=entry.get("df") or None,
        date_to=entry.get("dt") or None,
    )


def _custom_to_lesson(custom: CustomLesson) -> Lesson:
    return Lesson(
        id=custom.id,
        time=custom.time,
        subject=custom.subject or DEFAULT_SUBJECT,
        type=custom.type or DEFAULT_TYPE,
        room=custom.room,
        professor=custom.professor,
        lesson_number=custom.lesson_number,
    )


def normalize(
    raw: Mapping[str, Any] | None,
    now: datetime,
    custom_lessons: Iterable[CustomLesson] = (),
    *,
    slot_times: Mapping[int, str] = LESSON_TIMES,
    room_rules: Sequence[RoomRule] = ROOM_RULES,
) -> WeeklySchedule:
    """Build a weekly schedule from a raw feed, as of ``now``.

    Never raises on malformed input: non-dict entries are skipped, missing
    fields get placeholder text, and a feed without ``grid`` yields only the
    custom lessons. The input is not modified.
    """
    schedule: WeeklySchedule = {}

    grid = raw.get("grid") if isinstance(raw, Mapping) else None
    if not isinstance(grid, Mapping):
        logger.info("No grid in raw schedule")
        grid = {}

    for day_key, day_data in grid.items():
        day_key = str(day_key)
        lessons: list[Lesson] = []
        if isinstance(day_data, Mapping):
            for slot_key, entries in day_data.items():
                if not isinstance(entries, list):
                    continue
                for index, entry in enumerate(entries):
                    if not isinstance(entry, Mapping):
                        continue
                    if not is_within_window(entry, now):
                        continue
                    lessons.append(normalize_lesson(
                        entry, day_key, str(slot_key), index, slot_times, room_rules,
                    ))
        schedule[day_key] = lessons

    for custom in custom_lessons:
        if not 1 <= custom.day_number <= 6:
            logger.debug("Custom lesson %s targets day %d, skipped", custom.id, custom.day_number)
            continue
        schedule.setdefault(str(custom.day_number), []).append(_custom_to_lesson(custom))

    for day_key, lessons in schedule.items():
        lessons.sort(key=lambda lesson: lesson.lesson_number)
        logger.debug("Day %s: %d lessons", day_key, len(lessons))

    return schedule


def get_schedule_for_day(schedule: WeeklySchedule | None, day_number: int | str) -> list[Lesson]:
    if not schedule:
        return []
    return schedule.get(str(day_number)) or []
