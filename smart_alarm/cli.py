"""
Smart Alarm — Command Line Interface.

    smart-alarm alarm                    next alarm with a time breakdown
    smart-alarm next                     next class or reminder
    smart-alarm week                     first-lesson alarm for every day
    smart-alarm reminders list|add|delete
    smart-alarm lessons list|add|delete  custom lessons
    smart-alarm settings show|set

Every command accepts --now (ISO datetime) to compute against a fixed
instant instead of the wall clock.
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from smart_alarm.config import settings
from smart_alarm.core.next_event import find_next
from smart_alarm.core.planner import build_weekly_schedule, format_alarm_message, plan_next_alarm, plan_weekly_alarms
from smart_alarm.core.schedule_normalizer import LESSON_TIMES
from smart_alarm.core.weekday import day_name
from smart_alarm.data.models import REMINDER_TYPES, TRANSPORT_TYPES, UserSettings
from smart_alarm.data.store import AppStore
from smart_alarm.integrations.routes import YandexOsrmRouter
from smart_alarm.integrations.timetable import DmamiScheduleSource

_SETTING_KEYS = (
    "morning_routine",
    "extra_time",
    "home_address",
    "transport_type",
    "group_number",
    "weather_notifications",
    "traffic_notifications",
    "custom_route_duration",
)


def _now_arg(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO datetime: {value!r}") from None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=ZoneInfo(settings.TIMEZONE))


def _resolve_now(value: datetime | None) -> datetime:
    return value or datetime.now(ZoneInfo(settings.TIMEZONE))


def _schedule_source() -> DmamiScheduleSource:
    return DmamiScheduleSource(settings.SCHEDULE_BASE_URL, settings.HTTP_TIMEOUT_SECONDS)


def _route_provider() -> YandexOsrmRouter | None:
    if not settings.YANDEX_API_KEY:
        return None
    return YandexOsrmRouter(
        settings.YANDEX_API_KEY, settings.OSRM_URL, settings.HTTP_TIMEOUT_SECONDS,
    )


def _max_age() -> timedelta:
    return timedelta(hours=settings.SCHEDULE_CACHE_MAX_AGE_HOURS)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_alarm(store: AppStore, args: argparse.Namespace) -> int:
    now = _resolve_now(args.now)
    plan = asyncio.run(plan_next_alarm(
        store,
        now,
        schedule_source=_schedule_source(),
        route_provider=_route_provider(),
        weather_api_key=settings.OPENWEATHER_API_KEY,
        max_age=_max_age(),
    ))
    if plan is None:
        print("Нет предстоящих занятий или напоминаний")
        return 0
    print(format_alarm_message(plan, now))
    return 0


def _cmd_next(store: AppStore, args: argparse.Namespace) -> int:
    now = _resolve_now(args.now)
    user_settings = store.load_settings() or UserSettings()
    schedule = asyncio.run(build_weekly_schedule(
        store, user_settings, now, _schedule_source(), _max_age(),
    ))
    event = find_next(schedule, store.list_reminders(), now)
    if event is None:
        print("Нет предстоящих занятий или напоминаний")
        return 0
    print(f"{event.date}, {event.time}: {event.subject} ({event.type})")
    if event.room:
        print(f"Аудитория: {event.room}")
    if event.address:
        print(f"Адрес: {event.address}")
    return 0


def _cmd_week(store: AppStore, args: argparse.Namespace) -> int:
    now = _resolve_now(args.now)
    alarms = asyncio.run(plan_weekly_alarms(
        store, now, schedule_source=_schedule_source(), max_age=_max_age(),
    ))
    if not alarms:
        print("Расписание пусто")
        return 0
    for alarm in alarms:
        print(f"{alarm.day_name:<12} {alarm.time}  →  {alarm.class_time} {alarm.class_name}")
    return 0


def _cmd_reminders(store: AppStore, args: argparse.Namespace) -> int:
    if args.action == "add":
        try:
            datetime.fromisoformat(args.datetime)
        except ValueError:
            print(f"Некорректная дата: {args.datetime!r} (ожидается ISO, например 2025-03-01T14:00)")
            return 2
        reminder = store.add_reminder(
            args.title,
            args.datetime,
            address=args.address,
            type=args.type,
            route_duration=args.route_duration,
        )
        print(f"Добавлено: {reminder.id}")
        return 0

    if args.action == "delete":
        if not store.delete_reminder(args.id):
            print(f"Напоминание {args.id} не найдено")
            return 1
        print("Удалено")
        return 0

    reminders = store.list_reminders()
    if not reminders:
        print("Напоминаний нет")
    for r in reminders:
        route = f", в пути {r.route_duration} мин" if r.route_duration else ""
        print(f"{r.id}  {r.datetime}  [{r.type}] {r.title}  {r.address}{route}")
    return 0


def _cmd_lessons(store: AppStore, args: argparse.Namespace) -> int:
    if args.action == "add":
        lesson = store.add_custom_lesson(
            args.day,
            args.slot,
            LESSON_TIMES[args.slot],
            args.subject,
            type=args.type,
            room=args.room,
        )
        print(f"Добавлено: {lesson.id}")
        return 0

    if args.action == "delete":
        if not store.delete_custom_lesson(args.id):
            print(f"Занятие {args.id} не найдено")
            return 1
        print("Удалено")
        return 0

    lessons = store.list_custom_lessons()
    if not lessons:
        print("Своих занятий нет")
    for c in sorted(lessons, key=lambda c: (c.day_number, c.lesson_number)):
        print(f"{c.id}  {day_name(c.day_number)} {c.time}  {c.subject} ({c.type}) {c.room}")
    return 0


def _cmd_settings(store: AppStore, args: argparse.Namespace) -> int:
    current = store.load_settings() or UserSettings()

    if args.action == "set":
        data = current.to_dict()
        if args.key.startswith("campus:"):
            code = args.key.split(":", 1)[1]
            campuses = [c for c in data["campus_addresses"] if c["code"] == code]
            if not campuses:
                print(f"Неизвестный корпус: {code!r}")
                return 2
            campuses[0]["address"] = args.value
        elif args.key in _SETTING_KEYS:
            data[args.key] = args.value
        else:
            print(f"Неизвестный параметр: {args.key!r}")
            return 2
        if args.key == "transport_type" and args.value not in TRANSPORT_TYPES:
            print(f"Тип транспорта: одно из {', '.join(TRANSPORT_TYPES)}")
            return 2
        current = UserSettings.from_dict(data)
        store.save_settings(current)

    for key, value in current.to_dict().items():
        if key == "campus_addresses":
            for campus in value:
                print(f"campus:{campus['code']:<4} {campus['name']}: {campus['address'] or '—'}")
        else:
            print(f"{key}: {value}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smart-alarm",
        description="Wake-up time calculator for university classes and reminders",
    )
    parser.add_argument("--db", help="path to the SQLite store (default: DATABASE_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, helptext in (
        ("alarm", "next alarm with a time breakdown"),
        ("next", "next class or reminder"),
        ("week", "first-lesson alarm for every day"),
    ):
        p = sub.add_parser(name, help=helptext)
        p.add_argument("--now", type=_now_arg, help="compute as of this ISO datetime")

    reminders = sub.add_parser("reminders", help="manage one-off reminders")
    r_sub = reminders.add_subparsers(dest="action", required=True)
    r_sub.add_parser("list")
    r_add = r_sub.add_parser("add")
    r_add.add_argument("title")
    r_add.add_argument("datetime", help="ISO datetime, e.g. 2025-03-01T14:00")
    r_add.add_argument("--address", default="")
    r_add.add_argument("--type", choices=REMINDER_TYPES, default="meeting")
    r_add.add_argument("--route-duration", type=int, default=None)
    r_del = r_sub.add_parser("delete")
    r_del.add_argument("id")

    lessons = sub.add_parser("lessons", help="manage custom lessons")
    l_sub = lessons.add_subparsers(dest="action", required=True)
    l_sub.add_parser("list")
    l_add = l_sub.add_parser("add")
    l_add.add_argument("day", type=int, choices=range(1, 7), help="1 = Monday .. 6 = Saturday")
    l_add.add_argument("slot", type=int, choices=sorted(LESSON_TIMES), help="lesson number 1-7")
    l_add.add_argument("subject")
    l_add.add_argument("--type", default="")
    l_add.add_argument("--room", default="")
    l_del = l_sub.add_parser("delete")
    l_del.add_argument("id")

    settings_cmd = sub.add_parser("settings", help="show or change preferences")
    s_sub = settings_cmd.add_subparsers(dest="action", required=True)
    s_sub.add_parser("show")
    s_set = s_sub.add_parser("set")
    s_set.add_argument("key", help=f"one of {', '.join(_SETTING_KEYS)} or campus:<code>")
    s_set.add_argument("value")

    return parser


_COMMANDS = {
    "alarm": _cmd_alarm,
    "next": _cmd_next,
    "week": _cmd_week,
    "reminders": _cmd_reminders,
    "lessons": _cmd_lessons,
    "settings": _cmd_settings,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    store = AppStore(db_path=args.db)
    return _COMMANDS[args.command](store, args)
