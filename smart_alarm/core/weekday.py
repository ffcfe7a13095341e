"""Weekday numbering and day labels.

Two numbering schemes meet here:

- calendar numbering, Sunday=0 .. Saturday=6 (what the feed's clients used);
- app numbering, Monday=1 .. Sunday=7, with the academic week being 1-6.

Tables are read-only mappings so alternate calendars can be passed in
without touching module state.
"""

from __future__ import annotations

from datetime import date, datetime
from types import MappingProxyType
from typing import Mapping

ACADEMIC_WEEK_LENGTH = 6

WEEKDAY_NAMES: Mapping[int, str] = MappingProxyType({
    1: "Понедельник",
    2: "Вторник",
    3: "Среда",
    4: "Четверг",
    5: "Пятница",
    6: "Суббота",
    7: "Воскресенье",
})

TODAY = "Сегодня"
TOMORROW = "Завтра"
YESTERDAY = "Вчера"
UNKNOWN_DAY = "Неизвестный день"


def normalize_weekday(calendar_day: int) -> int:
    """Map Sunday=0 calendar numbering onto app numbering 1-7."""
    return 7 if calendar_day == 0 else calendar_day


def calendar_weekday(value: date) -> int:
    """Sunday=0 .. Saturday=6."""
    return value.isoweekday() % 7


def app_weekday(value: date) -> int:
    """Monday=1 .. Sunday=7."""
    return normalize_weekday(calendar_weekday(value))


def days_forward(target: int, from_day: int) -> int:
    """Days from ``from_day`` until the next ``target`` weekday, always >= 1.

    The same weekday means "next week": days_forward(3, 3) == 7.
    """
    diff = target - from_day
    if diff <= 0:
        diff += 7
    return diff


def academic_day_after(
    today: int, offset: int, week_length: int = ACADEMIC_WEEK_LENGTH,
) -> int:
    """Weekday ``offset`` steps after ``today``, wrapped into 1..week_length."""
    return ((today - 1 + offset) % week_length) + 1


def day_name(day_number: int, names: Mapping[int, str] = WEEKDAY_NAMES) -> str:
    return names.get(day_number, UNKNOWN_DAY)


def relative_day_name(
    target: datetime | date,
    now: datetime | date,
    names: Mapping[int, str] = WEEKDAY_NAMES,
) -> str:
    """Label ``target`` relative to ``now``: Сегодня / Завтра / Вчера / weekday."""
    target_day = target.date() if isinstance(target, datetime) else target
    today = now.date() if isinstance(now, datetime) else now

    diff = (target_day - today).days
    if diff == 0:
        return TODAY
    if diff == 1:
        return TOMORROW
    if diff == -1:
        return YESTERDAY
    return day_name(app_weekday(target_day), names)
