"""Alarm calculator — pure business logic.

Alarm time = class start - morning routine - travel time - extra buffer.

The class start is built on today's date. When the result lands in the past
for an event that is not today, the alarm is moved to the event's own date
(or, without an absolute start, to its next weekday), keeping the computed
hour and minute.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from smart_alarm.core.schedule_normalizer import get_schedule_for_day
from smart_alarm.core.time_parser import format_time, parse_time_to_datetime, start_time
from smart_alarm.core.weekday import (
    TODAY,
    app_weekday,
    day_name,
    days_forward,
    relative_day_name,
)
from smart_alarm.data.models import (
    AlarmResult,
    Breakdown,
    Countdown,
    NextEvent,
    RouteResult,
    UserSettings,
    WeeklySchedule,
)

logger = logging.getLogger(__name__)

DEFAULT_TRAVEL_MINUTES = 30


def build_breakdown(
    settings: UserSettings | None,
    route: RouteResult | None,
) -> Breakdown:
    """Itemize the minutes needed before the event starts."""
    settings = settings or UserSettings()

    travel = DEFAULT_TRAVEL_MINUTES
    traffic = 0
    if route is not None:
        if route.duration is not None:
            travel = route.duration
        if route.traffic_info is not None:
            traffic = route.traffic_info.additional_time

    total_travel = travel + traffic
    return Breakdown(
        morning_routine=settings.morning_routine,
        travel_time=total_travel,
        extra_time=settings.extra_time,
        total=settings.morning_routine + total_travel + settings.extra_time,
    )


def calculate_alarm(
    next_event: NextEvent | None,
    settings: UserSettings | dict | None,
    route: RouteResult | dict | None,
    now: datetime | None = None,
) -> AlarmResult | None:
    """Calculate when the alarm must ring for ``next_event``.

    Args:
        next_event: Resolved upcoming class or reminder (a NextEvent, not a
                    dict). Its absolute ``start``, when set, fixes the
                    rollover date.
        settings: User preferences; defaults (60 min routine, 10 min buffer)
                  when absent. Plain dicts are accepted.
        route: Travel estimate; 30 minutes when absent. Plain dicts are accepted.
        now: Current instant. Defaults to the wall clock.

    Returns:
        AlarmResult, or None when the event or its time is missing or
        unparseable.
    """
    if next_event is None or not next_event.time:
        return None

    if now is None:
        now = datetime.now()

    class_start = parse_time_to_datetime(next_event.time, now)
    if class_start is None:
        logger.warning("Failed to parse event time %r", next_event.time)
        return None

    if isinstance(settings, dict):
        settings = UserSettings.from_dict(settings)
    if isinstance(route, dict):
        route = RouteResult.from_dict(route)

    breakdown = build_breakdown(settings, route)
    alarm_at = class_start - timedelta(minutes=breakdown.total)

    if alarm_at < now and next_event.date != TODAY:
        if next_event.start is not None:
            event_day = now.replace(
                year=next_event.start.year,
                month=next_event.start.month,
                day=next_event.start.day,
            )
        else:
            event_day = now + timedelta(
                days=days_forward(next_event.day_number, app_weekday(now)),
            )
        alarm_at = event_day.replace(
            hour=alarm_at.hour, minute=alarm_at.minute, second=0, microsecond=0,
        )
        logger.debug("Alarm rolled forward to %s", alarm_at)

    return AlarmResult(
        time=format_time(alarm_at),
        date=relative_day_name(alarm_at, now),
        full_date=alarm_at,
        class_time=start_time(next_event.time),
        class_name=next_event.subject,
        class_type=next_event.type,
        breakdown=breakdown,
    )


def calculate_weekly_alarms(
    schedule: WeeklySchedule | None,
    settings: UserSettings | None,
    route: RouteResult | None,
    now: datetime,
) -> list[AlarmResult]:
    """One alarm per academic day, for that day's first lesson."""
    alarms: list[AlarmResult] = []
    if not schedule:
        return alarms

    for day in range(1, 7):
        lessons = get_schedule_for_day(schedule, day)
        if not lessons:
            continue
        first = lessons[0]
        event = NextEvent(
            kind="lesson",
            time=first.time,
            subject=first.subject,
            type=first.type,
            date=day_name(day),
            day_number=day,
            id=first.id,
            room=first.room,
            professor=first.professor,
            lesson_number=first.lesson_number,
        )
        alarm = calculate_alarm(event, settings, route, now)
        if alarm is None:
            continue
        alarm.day_number = day
        alarm.day_name = day_name(day)
        alarms.append(alarm)

    return alarms


def is_alarm_tomorrow(alarm_at: datetime | None, now: datetime) -> bool:
    if alarm_at is None:
        return False
    return alarm_at.date() == (now + timedelta(days=1)).date()


def time_until_alarm(alarm_at: datetime | None, now: datetime) -> Countdown | None:
    """Time left before the alarm rings; None once it is in the past."""
    if alarm_at is None:
        return None

    diff = alarm_at - now
    if diff < timedelta(0):
        return None

    total_minutes = int(diff.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return Countdown(
        hours=hours,
        minutes=minutes,
        total_minutes=total_minutes,
        formatted=f"{hours}ч {minutes}мин",
    )
