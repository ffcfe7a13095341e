"""
Smart Alarm — Next Event Resolver.

Finds the nearest upcoming class in the weekly schedule and the nearest
upcoming one-off reminder, then returns whichever starts first.

Classes: today's remaining lessons are checked first; otherwise the search
walks forward over the academic week (days 1-6) and takes the first lesson
of the first day that has any. Reminders: the earliest one strictly after
now. When a class and a reminder start at the same instant, the class wins.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable

from smart_alarm.core.schedule_normalizer import get_schedule_for_day
from smart_alarm.core.time_parser import format_time, minutes_of_day, parse_time_to_minutes
from smart_alarm.core.weekday import (
    TODAY,
    TOMORROW,
    academic_day_after,
    app_weekday,
    day_name,
    days_forward,
    relative_day_name,
)
from smart_alarm.data.models import Lesson, NextEvent, Reminder, WeeklySchedule

logger = logging.getLogger(__name__)


def _lesson_event(
    lesson: Lesson, label: str, day_number: int, start: datetime,
) -> NextEvent:
    return NextEvent(
        kind="lesson",
        time=lesson.time,
        subject=lesson.subject,
        type=lesson.type,
        date=label,
        day_number=day_number,
        start=start,
        id=lesson.id,
        room=lesson.room,
        professor=lesson.professor,
        lesson_number=lesson.lesson_number,
    )


def _at_minute(day: datetime, minute: int) -> datetime:
    midnight = day.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(minutes=minute)


def find_next_class(schedule: WeeklySchedule | None, now: datetime) -> NextEvent | None:
    """Return the next lesson after ``now``, or None for an empty schedule."""
    if not schedule:
        return None

    today = app_weekday(now)
    current = minutes_of_day(now)

    for lesson in get_schedule_for_day(schedule, today):
        start_minute = parse_time_to_minutes(lesson.time)
        if start_minute > current:
            return _lesson_event(lesson, TODAY, today, _at_minute(now, start_minute))

    # Sunday walks from day 0 so offset 1 lands on Monday
    walk_from = 0 if today == 7 else today
    for offset in range(1, 8):
        check_day = academic_day_after(walk_from, offset)
        lessons = get_schedule_for_day(schedule, check_day)
        if not lessons:
            continue
        first = lessons[0]
        label = TOMORROW if offset == 1 else day_name(check_day)
        start = _at_minute(
            now + timedelta(days=days_forward(check_day, today)),
            parse_time_to_minutes(first.time),
        )
        return _lesson_event(first, label, check_day, start)

    return None


def parse_reminder_datetime(value: str, now: datetime) -> datetime | None:
    """Parse a reminder's ISO datetime into ``now``'s timezone awareness.

    Naive values are read as wall-clock time in ``now``'s zone; aware values
    are converted into it (into the system zone when ``now`` is naive).
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable reminder datetime %r, skipping", value)
        return None

    if parsed.tzinfo is None:
        if now.tzinfo is not None:
            return parsed.replace(tzinfo=now.tzinfo)
        return parsed
    if now.tzinfo is not None:
        return parsed.astimezone(now.tzinfo)
    return parsed.astimezone().replace(tzinfo=None)


def find_next_reminder(reminders: Iterable[Reminder], now: datetime) -> NextEvent | None:
    """Return the earliest reminder strictly after ``now``."""
    best: tuple[datetime, Reminder] | None = None
    for reminder in reminders:
        at = parse_reminder_datetime(reminder.datetime, now)
        if at is None or at <= now:
            continue
        if best is None or at < best[0]:
            best = (at, reminder)

    if best is None:
        return None

    at, reminder = best
    return NextEvent(
        kind="reminder",
        time=format_time(at),
        subject=reminder.title,
        type=reminder.type,
        date=relative_day_name(at, now),
        day_number=app_weekday(at),
        start=at,
        id=reminder.id,
        address=reminder.address,
        route_duration=reminder.route_duration,
    )


def find_next(
    schedule: WeeklySchedule | None,
    reminders: Iterable[Reminder],
    now: datetime,
) -> NextEvent | None:
    """Return the earlier of the next class and the next reminder.

    Ties go to the class.
    """
    next_class = find_next_class(schedule, now)
    next_reminder = find_next_reminder(reminders, now)

    if next_class is None:
        return next_reminder
    if next_reminder is None:
        return next_class

    if next_reminder.start < next_class.start:
        logger.debug("Reminder '%s' comes before class '%s'", next_reminder.subject, next_class.subject)
        return next_reminder
    return next_class
