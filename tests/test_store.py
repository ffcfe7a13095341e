"""Tests for smart_alarm.data.store — SQLite key-value persistence."""

import sqlite3
from datetime import datetime, timedelta

from smart_alarm.data.models import RouteResult, TrafficInfo, UserSettings
from smart_alarm.data.store import LAST_ROUTE_KEY, SETTINGS_KEY


NOW = datetime(2025, 1, 6, 8, 0)


class TestRawAccess:
    def test_missing_key(self, store):
        assert store.get("nothing") is None

    def test_set_overwrites(self, store):
        store.set("k", {"a": 1})
        store.set("k", ["b"])
        assert store.get("k") == ["b"]

    def test_corrupt_json_reads_as_none(self, store, tmp_db_path):
        with sqlite3.connect(tmp_db_path) as conn:
            conn.execute(
                "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                (SETTINGS_KEY, "{not json", NOW.isoformat()),
            )
        assert store.get(SETTINGS_KEY) is None
        assert store.load_settings() is None

    def test_clear_all(self, store):
        store.save_settings(UserSettings())
        store.add_reminder("Встреча", "2025-01-06T12:00")
        store.clear_all()
        assert store.load_settings() is None
        assert store.list_reminders() == []


class TestSettings:
    def test_none_until_saved(self, store):
        assert store.load_settings() is None

    def test_round_trip(self, store):
        settings = UserSettings(morning_routine=45, home_address="Москва, ул. 1", transport_type="walk")
        store.save_settings(settings)
        assert store.load_settings() == settings

    def test_saved_wholesale(self, store):
        store.save_settings(UserSettings(morning_routine=45, extra_time=20))
        store.save_settings(UserSettings(morning_routine=30))
        assert store.load_settings().extra_time == 10


class TestScheduleCache:
    def test_fresh_cache(self, store, raw_schedule):
        store.save_schedule_cache(raw_schedule, NOW, group_number="231-324")
        assert store.load_schedule_cache(NOW + timedelta(hours=1)) == raw_schedule

    def test_stale_cache(self, store, raw_schedule):
        store.save_schedule_cache(raw_schedule, NOW)
        later = NOW + timedelta(hours=25)
        assert store.load_schedule_cache(later) is None
        assert store.load_schedule_cache(later, max_age=None) == raw_schedule

    def test_other_group_ignored(self, store, raw_schedule):
        store.save_schedule_cache(raw_schedule, NOW, group_number="231-324")
        assert store.load_schedule_cache(NOW, group_number="231-999") is None
        assert store.load_schedule_cache(NOW, group_number="231-324") == raw_schedule

    def test_missing(self, store):
        assert store.load_schedule_cache(NOW) is None


class TestRouteData:
    def test_round_trip(self, store):
        route = RouteResult(
            distance=8.2, duration=27, mode="auto",
            traffic_info=TrafficInfo("high", 10, "Пробки"), is_real_route=True,
        )
        store.save_route_data(route)
        assert store.load_route_data() == route

    def test_missing_or_garbage(self, store):
        assert store.load_route_data() is None
        store.set(LAST_ROUTE_KEY, "garbage")
        assert store.load_route_data() is None


class TestReminders:
    def test_add_and_list_sorted(self, store):
        store.add_reminder("Поздняя", "2025-01-08T18:00")
        early = store.add_reminder("  Ранняя  ", "2025-01-07T09:00", address="ул. Ленина, 1", type="appointment")
        reminders = store.list_reminders()
        assert [r.title for r in reminders] == ["Ранняя", "Поздняя"]
        assert reminders[0] == early
        assert early.type == "appointment"
        assert len({r.id for r in reminders}) == 2

    def test_update_keeps_identity(self, store):
        created = store.add_reminder("Встреча", "2025-01-07T09:00", now=NOW)
        updated = store.update_reminder(
            created.id,
            {"title": "Созвон", "id": "hijack", "created_at": "never"},
            now=NOW + timedelta(hours=1),
        )
        assert updated.id == created.id
        assert updated.title == "Созвон"
        assert updated.created_at == NOW.isoformat()
        assert updated.updated_at == (NOW + timedelta(hours=1)).isoformat()
        assert store.list_reminders() == [updated]

    def test_update_unknown(self, store):
        assert store.update_reminder("missing", {"title": "x"}) is None

    def test_delete(self, store):
        r = store.add_reminder("Встреча", "2025-01-07T09:00")
        assert store.delete_reminder(r.id) is True
        assert store.delete_reminder(r.id) is False
        assert store.list_reminders() == []


class TestCustomLessons:
    def test_add_list_delete(self, store):
        lesson = store.add_custom_lesson(2, 3, "12:20-13:50", "Йога", now=NOW)
        assert lesson.id.startswith("custom-")
        assert lesson.type == "Занятие"
        assert lesson.room == "Не указана"
        assert store.list_custom_lessons() == [lesson]

        assert store.delete_custom_lesson(lesson.id) is True
        assert store.delete_custom_lesson(lesson.id) is False
        assert store.list_custom_lessons() == []
