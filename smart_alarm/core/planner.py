"""
Smart Alarm — Alarm Planner.

Glues the store, the upstream providers and the pure core together:

    settings ─┐
    timetable ─┼─► normalize ─► find_next ─► choose route ─► calculate_alarm
    reminders ─┘

Every upstream step degrades gracefully:
- timetable fetch fails -> stale cache -> custom lessons only
- route build fails     -> last saved route -> mock route
- weather fetch fails   -> mock weather

This module is provider-agnostic: it depends on the ScheduleSource and
RouteProvider protocols, not on specific implementations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from smart_alarm.core.alarm_calculator import calculate_alarm, calculate_weekly_alarms, time_until_alarm
from smart_alarm.core.campus import extract_campus_code, get_campus_address
from smart_alarm.core.next_event import find_next
from smart_alarm.core.schedule_normalizer import normalize
from smart_alarm.data.models import AlarmResult, NextEvent, RouteResult, UserSettings, WeeklySchedule
from smart_alarm.integrations.routes import get_mock_route_data, get_traffic_info, transport_mode
from smart_alarm.ports.route_port import RouteError
from smart_alarm.ports.schedule_port import ScheduleFetchError

if TYPE_CHECKING:
    from smart_alarm.data.store import AppStore
    from smart_alarm.ports.route_port import RouteProvider
    from smart_alarm.ports.schedule_port import ScheduleSource

logger = logging.getLogger(__name__)


@dataclass
class AlarmPlan:
    """Everything the UI needs to show the next alarm."""

    event: NextEvent
    alarm: AlarmResult | None
    route: RouteResult
    route_source: str              # reminder | custom | provider | cached | mock
    weather_hints: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Timetable
# ---------------------------------------------------------------------------


async def load_raw_schedule(
    store: AppStore,
    user_settings: UserSettings,
    now: datetime,
    schedule_source: ScheduleSource | None = None,
    max_age: timedelta = timedelta(hours=24),
) -> dict | None:
    """Fresh cache, else fetch (and cache), else whatever cache is left."""
    group = user_settings.group_number
    cached = store.load_schedule_cache(now, max_age, group_number=group)
    if cached is not None:
        return cached

    if schedule_source is not None and group:
        try:
            raw = await schedule_source.fetch_schedule(group)
            store.save_schedule_cache(raw, now, group_number=group)
            return raw
        except ScheduleFetchError as exc:
            logger.warning("Timetable fetch failed, trying stale cache: %s", exc)

    return store.load_schedule_cache(now, max_age=None, group_number=group)


async def build_weekly_schedule(
    store: AppStore,
    user_settings: UserSettings,
    now: datetime,
    schedule_source: ScheduleSource | None = None,
    max_age: timedelta = timedelta(hours=24),
) -> WeeklySchedule:
    raw = await load_raw_schedule(store, user_settings, now, schedule_source, max_age)
    return normalize(raw, now, store.list_custom_lessons())


# ---------------------------------------------------------------------------
# Route selection
# ---------------------------------------------------------------------------


def _fixed_route(duration: int, mode: str) -> RouteResult:
    return RouteResult(distance=0.0, duration=duration, mode=mode, api_source="manual")


def _destination(event: NextEvent, user_settings: UserSettings) -> str | None:
    if event.kind == "reminder":
        return event.address or None
    code = extract_campus_code(event.room)
    return get_campus_address(code, user_settings.campus_addresses)


async def choose_route(
    event: NextEvent,
    user_settings: UserSettings,
    now: datetime,
    store: AppStore,
    route_provider: RouteProvider | None = None,
) -> tuple[RouteResult, str]:
    """Pick the travel estimate for ``event`` and say where it came from."""
    mode = transport_mode(user_settings.transport_type)

    if event.kind == "reminder" and event.route_duration:
        route, source = _fixed_route(event.route_duration, mode), "reminder"
    elif event.kind == "lesson" and user_settings.custom_route_duration:
        route, source = _fixed_route(user_settings.custom_route_duration, mode), "custom"
    else:
        route, source = None, ""
        destination = _destination(event, user_settings)
        if route_provider is not None and destination and user_settings.home_address:
            try:
                route = await route_provider.build_route(
                    user_settings.home_address, destination, mode,
                )
                store.save_route_data(route)
                source = "provider"
            except RouteError as exc:
                logger.warning("Route build failed for '%s': %s", destination, exc)
        if route is None:
            route, source = store.load_route_data(), "cached"
        if route is None:
            route, source = get_mock_route_data(), "mock"

    if (
        mode == "auto"
        and user_settings.traffic_notifications
        and route.traffic_info is None
    ):
        route.traffic_info = get_traffic_info(now)

    logger.info("Route for '%s': %s min (%s)", event.subject, route.duration, source)
    return route, source


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------


async def weather_hints(user_settings: UserSettings, api_key: str) -> list[str]:
    """Clothing hints for the morning; mock weather when the API is unavailable."""
    from smart_alarm.integrations.weather import (
        WeatherError,
        fetch_weather_by_city,
        get_mock_weather_data,
        get_weather_recommendations,
    )

    city = user_settings.home_address.split(",")[0].strip()
    weather = None
    if api_key and city:
        try:
            weather = await fetch_weather_by_city(city, api_key)
        except WeatherError as exc:
            logger.warning("Weather fetch failed for '%s': %s", city, exc)
    if weather is None:
        weather = get_mock_weather_data()
    return get_weather_recommendations(weather)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


async def plan_next_alarm(
    store: AppStore,
    now: datetime,
    *,
    schedule_source: ScheduleSource | None = None,
    route_provider: RouteProvider | None = None,
    weather_api_key: str = "",
    max_age: timedelta = timedelta(hours=24),
) -> AlarmPlan | None:
    """Resolve the next class or reminder and the alarm for it.

    Returns None when there is nothing upcoming.
    """
    user_settings = store.load_settings() or UserSettings()
    schedule = await build_weekly_schedule(
        store, user_settings, now, schedule_source, max_age,
    )

    event = find_next(schedule, store.list_reminders(), now)
    if event is None:
        logger.info("Nothing upcoming")
        return None

    route, source = await choose_route(event, user_settings, now, store, route_provider)
    alarm = calculate_alarm(event, user_settings, route, now)

    hints: list[str] = []
    if user_settings.weather_notifications:
        hints = await weather_hints(user_settings, weather_api_key)

    return AlarmPlan(event=event, alarm=alarm, route=route, route_source=source, weather_hints=hints)


async def plan_weekly_alarms(
    store: AppStore,
    now: datetime,
    *,
    schedule_source: ScheduleSource | None = None,
    max_age: timedelta = timedelta(hours=24),
) -> list[AlarmResult]:
    """First-lesson alarm for each academic day, using the last saved route."""
    user_settings = store.load_settings() or UserSettings()
    schedule = await build_weekly_schedule(
        store, user_settings, now, schedule_source, max_age,
    )
    route = store.load_route_data()
    if user_settings.custom_route_duration:
        route = _fixed_route(
            user_settings.custom_route_duration,
            transport_mode(user_settings.transport_type),
        )
    return calculate_weekly_alarms(schedule, user_settings, route, now)


def format_alarm_message(plan: AlarmPlan, now: datetime) -> str:
    """Human-readable alarm summary."""
    event = plan.event
    if plan.alarm is None:
        return f"Следующее событие: {event.subject} ({event.date}), время не указано"

    alarm = plan.alarm
    lines = [
        f"Будильник: {alarm.time} ({alarm.date})",
        f"{event.date}: {alarm.class_name} в {alarm.class_time}",
        f"Утренняя рутина: {alarm.breakdown.morning_routine} мин",
        f"Время в пути: {alarm.breakdown.travel_time} мин",
        f"Запас времени: {alarm.breakdown.extra_time} мин",
        f"Итого: {alarm.breakdown.total} мин",
    ]

    countdown = time_until_alarm(alarm.full_date, now)
    if countdown is not None:
        lines.append(f"До будильника: {countdown.formatted}")

    lines.extend(plan.weather_hints)
    return "\n".join(lines)
