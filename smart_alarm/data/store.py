"""
Smart Alarm — Local Store.

A small SQLite-backed key-value store holding everything the app keeps
between runs: user settings, the raw timetable cache, the last built route,
reminders and custom lessons. Values are JSON documents under fixed keys.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from smart_alarm.data.models import CustomLesson, Reminder, RouteResult, UserSettings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "app_settings"
SCHEDULE_KEY = "cached_schedule"
LAST_ROUTE_KEY = "last_route_data"
REMINDERS_KEY = "reminders"
CUSTOM_LESSONS_KEY = "custom_lessons"

DEFAULT_CACHE_MAX_AGE = timedelta(hours=24)


class AppStore:
    """SQLite-backed key-value storage for user state."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from smart_alarm.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key        TEXT PRIMARY KEY,
                    value      TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
        logger.debug("Key-value table initialized at %s", self._db_path)

    # -- raw access ---------------------------------------------------------

    def get(self, key: str) -> Any:
        """Return the decoded value under ``key``, or None if missing/corrupt."""
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except ValueError:
            logger.error("Corrupt JSON under key %r, ignoring", key)
            return None

    def set(self, key: str, value: Any) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, json.dumps(value, ensure_ascii=False), datetime.now().isoformat()),
            )

    def clear_all(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv")
        logger.info("All stored data cleared")

    # -- settings -----------------------------------------------------------

    def save_settings(self, user_settings: UserSettings) -> None:
        """Overwrite the stored settings wholesale."""
        self.set(SETTINGS_KEY, user_settings.to_dict())
        logger.info("Settings saved")

    def load_settings(self) -> UserSettings | None:
        data = self.get(SETTINGS_KEY)
        if not isinstance(data, dict):
            return None
        return UserSettings.from_dict(data)

    # -- timetable cache ----------------------------------------------------

    def save_schedule_cache(self, raw: dict, now: datetime, group_number: str = "") -> None:
        self.set(SCHEDULE_KEY, {
            "schedule": raw,
            "timestamp": now.timestamp(),
            "group_number": group_number,
        })
        logger.info("Timetable cached")

    def load_schedule_cache(
        self,
        now: datetime,
        max_age: timedelta | None = DEFAULT_CACHE_MAX_AGE,
        group_number: str | None = None,
    ) -> dict | None:
        """Return the cached raw timetable, or None if missing or too old.

        ``max_age=None`` accepts a cache of any age. When ``group_number`` is
        given, a cache saved for another group is ignored.
        """
        data = self.get(SCHEDULE_KEY)
        if not isinstance(data, dict) or "schedule" not in data:
            return None
        if group_number is not None and data.get("group_number", "") != group_number:
            logger.info("Timetable cache belongs to another group")
            return None

        age = now.timestamp() - float(data.get("timestamp", 0))
        if max_age is not None and age > max_age.total_seconds():
            logger.info("Timetable cache is stale (%.0f s old)", age)
            return None
        return data["schedule"]

    # -- last route ---------------------------------------------------------

    def save_route_data(self, route: RouteResult) -> None:
        self.set(LAST_ROUTE_KEY, route.to_dict())

    def load_route_data(self) -> RouteResult | None:
        data = self.get(LAST_ROUTE_KEY)
        if not isinstance(data, dict):
            return None
        return RouteResult.from_dict(data)

    # -- reminders ----------------------------------------------------------

    def list_reminders(self) -> list[Reminder]:
        """All reminders, ordered by datetime."""
        items = self.get(REMINDERS_KEY) or []
        reminders = [Reminder.from_dict(r) for r in items if isinstance(r, dict)]
        reminders.sort(key=lambda r: r.datetime)
        return reminders

    def _save_reminders(self, reminders: list[Reminder]) -> None:
        self.set(REMINDERS_KEY, [r.to_dict() for r in reminders])

    def add_reminder(
        self,
        title: str,
        at: str,
        address: str = "",
        type: str = "meeting",
        route_duration: int | None = None,
        now: datetime | None = None,
    ) -> Reminder:
        stamp = (now or datetime.now()).isoformat()
        reminder = Reminder.from_dict({
            "id": uuid.uuid4().hex,
            "title": title.strip(),
            "datetime": at,
            "address": address.strip(),
            "type": type,
            "route_duration": route_duration,
            "created_at": stamp,
            "updated_at": stamp,
        })
        reminders = self.list_reminders()
        reminders.append(reminder)
        self._save_reminders(reminders)
        logger.info("Reminder added: %s '%s' at %s", reminder.id, reminder.title, at)
        return reminder

    def update_reminder(
        self, reminder_id: str, changes: dict[str, Any], now: datetime | None = None,
    ) -> Reminder | None:
        """Apply ``changes`` to a reminder; ``id`` and ``created_at`` are kept."""
        reminders = self.list_reminders()
        for i, reminder in enumerate(reminders):
            if reminder.id != reminder_id:
                continue
            data = reminder.to_dict()
            data.update(changes)
            data["id"] = reminder.id
            data["created_at"] = reminder.created_at
            data["updated_at"] = (now or datetime.now()).isoformat()
            reminders[i] = Reminder.from_dict(data)
            self._save_reminders(reminders)
            logger.info("Reminder %s updated", reminder_id)
            return reminders[i]
        return None

    def delete_reminder(self, reminder_id: str) -> bool:
        reminders = self.list_reminders()
        kept = [r for r in reminders if r.id != reminder_id]
        if len(kept) == len(reminders):
            return False
        self._save_reminders(kept)
        logger.info("Reminder %s deleted", reminder_id)
        return True

    # -- custom lessons -----------------------------------------------------

    def list_custom_lessons(self) -> list[CustomLesson]:
        items = self.get(CUSTOM_LESSONS_KEY) or []
        return [CustomLesson.from_dict(c) for c in items if isinstance(c, dict)]

    def add_custom_lesson(
        self,
        day_number: int,
        lesson_number: int,
        time: str,
        subject: str,
        type: str = "",
        room: str = "",
        now: datetime | None = None,
    ) -> CustomLesson:
        lesson = CustomLesson(
            id=f"custom-{uuid.uuid4().hex}",
            day_number=day_number,
            lesson_number=lesson_number,
            time=time,
            subject=subject.strip(),
            type=type.strip() or "Занятие",
            room=room.strip() or "Не указана",
            created_at=(now or datetime.now()).isoformat(),
        )
        lessons = self.list_custom_lessons()
        lessons.append(lesson)
        self.set(CUSTOM_LESSONS_KEY, [c.to_dict() for c in lessons])
        logger.info(
            "Custom lesson added: %s '%s' day %d slot %d",
            lesson.id, lesson.subject, day_number, lesson_number,
        )
        return lesson

    def delete_custom_lesson(self, lesson_id: str) -> bool:
        lessons = self.list_custom_lessons()
        kept = [c for c in lessons if c.id != lesson_id]
        if len(kept) == len(lessons):
            return False
        self.set(CUSTOM_LESSONS_KEY, [c.to_dict() for c in kept])
        logger.info("Custom lesson %s deleted", lesson_id)
        return True
