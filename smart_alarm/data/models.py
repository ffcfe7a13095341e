"""
Smart Alarm — Data Models.

Plain dataclasses shared by the core engine, the store and the integrations.
Everything here round-trips through JSON: the store persists ``to_dict()``
output and reads it back with ``from_dict()``, which also accepts the
camelCase keys and string numbers written by the mobile client.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

REMINDER_TYPES = ("meeting", "event", "appointment")
TRANSPORT_TYPES = ("public", "car", "walk")


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among alternate key spellings."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_bool(value: Any, default: bool) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
        return default
    if value is None:
        return default
    return bool(value)


def _to_optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class Lesson:
    """One normalized class occurrence inside a weekday."""

    id: str                    # "{day}-{slot}-{index}" or a custom lesson id
    time: str                  # "HH:MM-HH:MM" or ""
    subject: str
    type: str
    room: str
    professor: str
    lesson_number: int         # slot 1-7, sort key
    date_from: str | None = None
    date_to: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


# Normalized schedule: weekday key ("1".."6") → lessons sorted by lesson_number
WeeklySchedule = dict[str, list[Lesson]]


@dataclass
class CustomLesson:
    """A user-defined recurring lesson, merged into the schedule at read time."""

    id: str
    day_number: int            # 1-6
    lesson_number: int         # 1-7
    time: str
    subject: str
    type: str = "Занятие"
    room: str = "Не указана"
    professor: str = ""
    created_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> CustomLesson:
        return cls(
            id=str(data.get("id", "")),
            day_number=_to_int(_pick(data, "day_number", "dayNumber"), 0),
            lesson_number=_to_int(_pick(data, "lesson_number", "lessonNumber"), 0),
            time=data.get("time") or "",
            subject=data.get("subject") or "",
            type=data.get("type") or "Занятие",
            room=data.get("room") or "Не указана",
            professor=data.get("professor") or "",
            created_at=_pick(data, "created_at", "createdAt", default=""),
        )


@dataclass
class Reminder:
    """A one-off personal event at an absolute point in time."""

    id: str
    title: str
    datetime: str                      # ISO-8601, absolute
    address: str = ""
    type: str = "meeting"              # one of REMINDER_TYPES
    route_duration: int | None = None  # minutes, user-entered
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Reminder:
        kind = data.get("type") or "meeting"
        if kind not in REMINDER_TYPES:
            logger.debug("Unknown reminder type %r, using 'meeting'", kind)
            kind = "meeting"
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            datetime=data.get("datetime") or "",
            address=data.get("address") or "",
            type=kind,
            route_duration=_to_optional_int(
                _pick(data, "route_duration", "routeDuration"),
            ),
            created_at=_pick(data, "created_at", "createdAt", default=""),
            updated_at=_pick(data, "updated_at", "updatedAt", default=""),
        )


@dataclass
class CampusAddress:
    """A university building the user may travel to."""

    code: str                  # e.g. "пр"
    name: str
    address: str = ""


def default_campuses(legacy_address: str = "") -> list[CampusAddress]:
    """The four university buildings; a legacy single address goes to "пр"."""
    return [
        CampusAddress(code="пр", name="Прянишникова", address=legacy_address),
        CampusAddress(code="пк", name="Павла Корчагина"),
        CampusAddress(code="ав", name="Автозаводская"),
        CampusAddress(code="бс", name="Большая Семеновская"),
    ]


@dataclass
class UserSettings:
    """Per-user preferences. Saved wholesale, never merged field by field."""

    morning_routine: int = 60          # minutes
    extra_time: int = 10               # minutes of safety buffer
    home_address: str = ""
    campus_addresses: list[CampusAddress] = field(default_factory=default_campuses)
    transport_type: str = "public"     # one of TRANSPORT_TYPES
    group_number: str = ""
    weather_notifications: bool = True
    traffic_notifications: bool = True
    custom_route_duration: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> UserSettings:
        if not data:
            return cls()
        transport = _pick(data, "transport_type", "transportType", default="public")
        if transport not in TRANSPORT_TYPES:
            transport = "public"
        campuses = [
            CampusAddress(
                code=c.get("code", ""),
                name=c.get("name", ""),
                address=c.get("address") or "",
            )
            for c in _pick(data, "campus_addresses", "campusAddresses", default=[])
            if isinstance(c, dict)
        ]
        if not campuses:
            # Older saves kept a single "universityAddress"
            campuses = default_campuses(data.get("universityAddress") or "")
        return cls(
            morning_routine=_to_int(
                _pick(data, "morning_routine", "morningRoutine"), 60,
            ),
            extra_time=_to_int(_pick(data, "extra_time", "extraTime"), 10),
            home_address=_pick(data, "home_address", "homeAddress", default=""),
            campus_addresses=campuses,
            transport_type=transport,
            group_number=str(_pick(data, "group_number", "groupNumber", default="")),
            weather_notifications=_to_bool(
                _pick(data, "weather_notifications", "weatherNotifications"), True,
            ),
            traffic_notifications=_to_bool(
                _pick(data, "traffic_notifications", "trafficNotifications"), True,
            ),
            custom_route_duration=_to_optional_int(
                _pick(data, "custom_route_duration", "customRouteDuration"),
            ),
        )


@dataclass
class TrafficInfo:
    level: str = "low"                 # low | medium | high
    additional_time: int = 0           # minutes
    description: str = ""


@dataclass
class RouteStep:
    id: str
    type: str                          # walk | bus | car
    description: str
    duration: int
    distance: float


@dataclass
class RouteResult:
    """Travel estimate between home and a destination."""

    distance: float                    # km
    duration: int | None               # minutes
    mode: str                          # transit | auto | pedestrian
    steps: list[RouteStep] = field(default_factory=list)
    traffic_info: TrafficInfo | None = None
    is_real_route: bool = False
    map_url: str = ""
    api_source: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> RouteResult:
        traffic = _pick(data, "traffic_info", "trafficInfo")
        steps = [
            RouteStep(
                id=str(s.get("id", "")),
                type=s.get("type", ""),
                description=s.get("description", ""),
                duration=_to_int(s.get("duration"), 0),
                distance=_to_float(s.get("distance")),
            )
            for s in data.get("steps") or []
            if isinstance(s, dict)
        ]
        return cls(
            distance=_to_float(data.get("distance")),
            duration=_to_optional_int(data.get("duration")),
            mode=data.get("mode") or "transit",
            steps=steps,
            traffic_info=TrafficInfo(
                level=traffic.get("level", "low"),
                additional_time=_to_int(
                    _pick(traffic, "additional_time", "additionalTime"), 0,
                ),
                description=traffic.get("description", ""),
            ) if isinstance(traffic, dict) else None,
            is_real_route=_to_bool(_pick(data, "is_real_route", "isRealRoute"), False),
            map_url=_pick(data, "map_url", "mapUrl", default=""),
            api_source=_pick(data, "api_source", "apiSource", default=""),
        )


@dataclass
class NextEvent:
    """The nearest upcoming class or reminder, as resolved relative to now."""

    kind: str                          # "lesson" | "reminder"
    time: str                          # display time, e.g. "09:00-10:30" or "14:00"
    subject: str
    type: str
    date: str                          # "Сегодня", "Завтра" or a weekday name
    day_number: int                    # app weekday 1-7
    start: datetime | None = None      # absolute start instant
    id: str = ""
    room: str = ""
    professor: str = ""
    lesson_number: int = 0
    address: str = ""
    route_duration: int | None = None


@dataclass
class Breakdown:
    morning_routine: int
    travel_time: int
    extra_time: int
    total: int


@dataclass
class AlarmResult:
    """Derived wake-up recommendation. Recomputed whenever inputs change."""

    time: str                          # HH:MM
    date: str                          # relative label of the alarm day
    full_date: datetime
    class_time: str                    # start time only
    class_name: str
    class_type: str
    breakdown: Breakdown
    day_number: int | None = None
    day_name: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        data["full_date"] = self.full_date.isoformat()
        return data


@dataclass
class Countdown:
    hours: int
    minutes: int
    total_minutes: int
    formatted: str                     # e.g. "7ч 15мин"
