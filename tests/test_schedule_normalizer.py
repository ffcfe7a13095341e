"""Tests for smart_alarm.core.schedule_normalizer — feed grid to weekly schedule."""

import copy
from datetime import datetime

from smart_alarm.core.schedule_normalizer import (
    DEFAULT_PROFESSOR,
    DEFAULT_ROOM,
    DEFAULT_SUBJECT,
    DEFAULT_TYPE,
    get_schedule_for_day,
    is_within_window,
    normalize,
    resolve_room,
    strip_tags,
)
from smart_alarm.data.models import CustomLesson, Lesson


NOW = datetime(2025, 1, 6, 8, 0)


class TestNormalize:
    def test_lesson_fields(self, raw_schedule):
        schedule = normalize(raw_schedule, NOW)
        math = schedule["1"][0]
        assert math == Lesson(
            id="1-1-0",
            time="09:00-10:30",
            subject="Математика",
            type="Лекция",
            room="пр-123",
            professor="Иванов И.И.",
            lesson_number=1,
        )

    def test_blank_teacher_and_tagged_auditory(self, raw_schedule):
        physics = normalize(raw_schedule, NOW)["1"][1]
        assert physics.professor == DEFAULT_PROFESSOR
        assert physics.room == "ПК-401"
        assert physics.time == "12:20-13:50"

    def test_empty_entry_gets_defaults(self):
        schedule = normalize({"grid": {"3": {"4": [{}]}}}, NOW)
        lesson = schedule["3"][0]
        assert lesson.subject == DEFAULT_SUBJECT
        assert lesson.type == DEFAULT_TYPE
        assert lesson.professor == DEFAULT_PROFESSOR
        assert lesson.room == DEFAULT_ROOM
        assert lesson.lesson_number == 4

    def test_unknown_slot_has_no_time(self):
        lesson = normalize({"grid": {"1": {"9": [{"sbj": "Ночная"}]}}}, NOW)["1"][0]
        assert lesson.time == ""
        assert lesson.lesson_number == 9

    def test_garbage_entries_skipped(self):
        raw = {"grid": {"1": {"1": ["oops", None, {"sbj": "Ок"}], "2": "not a list"}}}
        schedule = normalize(raw, NOW)
        assert [lesson.subject for lesson in schedule["1"]] == ["Ок"]
        assert schedule["1"][0].id == "1-1-2"

    def test_no_grid(self):
        assert normalize({}, NOW) == {}
        assert normalize(None, NOW) == {}
        assert normalize({"grid": "broken"}, NOW) == {}

    def test_non_mapping_day_is_empty(self):
        assert normalize({"grid": {"4": []}}, NOW) == {"4": []}

    def test_sorted_by_lesson_number(self):
        raw = {"grid": {"1": {"5": [{"sbj": "B"}], "2": [{"sbj": "A"}]}}}
        assert [lesson.lesson_number for lesson in normalize(raw, NOW)["1"]] == [2, 5]

    def test_idempotent_and_input_untouched(self, raw_schedule):
        before = copy.deepcopy(raw_schedule)
        assert normalize(raw_schedule, NOW) == normalize(raw_schedule, NOW)
        assert raw_schedule == before

    def test_custom_slot_times(self):
        raw = {"grid": {"1": {"1": [{"sbj": "A"}]}}}
        schedule = normalize(raw, NOW, slot_times={1: "08:30-10:00"})
        assert schedule["1"][0].time == "08:30-10:00"


class TestValidityWindow:
    def test_inside_window_kept(self, raw_schedule):
        assert [lesson.subject for lesson in normalize(raw_schedule, NOW)["2"]] == ["История"]

    def test_outside_window_dropped(self, raw_schedule):
        assert normalize(raw_schedule, datetime(2025, 2, 1))["2"] == []
        assert normalize(raw_schedule, datetime(2024, 12, 31))["2"] == []

    def test_bounds_inclusive(self):
        entry = {"df": "2025-01-01", "dt": "2025-01-10"}
        assert is_within_window(entry, datetime(2025, 1, 1, 0, 0))
        assert is_within_window(entry, datetime(2025, 1, 10, 23, 0))

    def test_open_sides(self):
        assert is_within_window({"df": "2025-01-01"}, datetime(2030, 1, 1))
        assert not is_within_window({"df": "2025-01-01"}, datetime(2024, 1, 1))
        assert is_within_window({"dt": "2025-01-10"}, datetime(2020, 1, 1))
        assert is_within_window({}, NOW)

    def test_unparseable_bound_ignored(self):
        assert is_within_window({"df": "когда-нибудь", "dt": "2025-01-10"}, NOW)

    def test_window_kept_on_lesson(self, raw_schedule):
        history = normalize(raw_schedule, NOW)["2"][0]
        assert history.date_from == "2025-01-01"
        assert history.date_to == "2025-01-10"


class TestRoomRules:
    def test_short_rooms_first(self):
        entry = {"shortRooms": ["пр-1"], "auditories": [{"title": "пк-2"}], "aud": "ав-3"}
        assert resolve_room(entry) == "пр-1"

    def test_blank_short_room_falls_through(self):
        entry = {"shortRooms": [""], "auditories": [{"title": "<i>пк-2</i>"}]}
        assert resolve_room(entry) == "пк-2"

    def test_plain_fields(self):
        assert resolve_room({"aud": "ав-3"}) == "ав-3"
        assert resolve_room({"auditoria": "бс-4"}) == "бс-4"

    def test_nothing_found(self):
        assert resolve_room({"shortRooms": [], "auditories": ["x"]}) == DEFAULT_ROOM

    def test_custom_rules(self):
        assert resolve_room({"place": "online"}, [lambda e: e.get("place")]) == "online"

    def test_strip_tags(self):
        assert strip_tags("<b>ПК-401</b>") == "ПК-401"


class TestCustomLessons:
    def _custom(self, day, slot, subject="Своё"):
        return CustomLesson(
            id=f"custom-{day}-{slot}",
            day_number=day,
            lesson_number=slot,
            time="10:40-12:10",
            subject=subject,
        )

    def test_merged_in_slot_order(self, raw_schedule):
        schedule = normalize(raw_schedule, NOW, [self._custom(1, 2)])
        assert [lesson.subject for lesson in schedule["1"]] == ["Математика", "Своё", "Физика"]

    def test_creates_missing_day(self):
        schedule = normalize({}, NOW, [self._custom(5, 1)])
        assert schedule["5"][0].id == "custom-5-1"
        assert schedule["5"][0].room == "Не указана"

    def test_sunday_custom_ignored(self):
        assert normalize({}, NOW, [self._custom(7, 1)]) == {}


class TestGetScheduleForDay:
    def test_int_and_str_keys(self, raw_schedule):
        schedule = normalize(raw_schedule, NOW)
        assert get_schedule_for_day(schedule, 1) == get_schedule_for_day(schedule, "1")
        assert len(get_schedule_for_day(schedule, 1)) == 2

    def test_missing_day(self):
        assert get_schedule_for_day({}, 3) == []
        assert get_schedule_for_day(None, 3) == []
