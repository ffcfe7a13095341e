"""Tests for smart_alarm.core.weekday — numbering schemes and labels."""

from datetime import date, datetime

import pytest

from smart_alarm.core.weekday import (
    UNKNOWN_DAY,
    academic_day_after,
    app_weekday,
    calendar_weekday,
    day_name,
    days_forward,
    normalize_weekday,
    relative_day_name,
)


class TestNumbering:
    def test_sunday_zero_becomes_seven(self):
        assert normalize_weekday(0) == 7
        assert normalize_weekday(3) == 3

    def test_calendar_and_app_weekday(self):
        sunday, monday = date(2025, 1, 5), date(2025, 1, 6)
        assert calendar_weekday(sunday) == 0
        assert app_weekday(sunday) == 7
        assert calendar_weekday(monday) == 1
        assert app_weekday(monday) == 1

    @pytest.mark.parametrize("target,from_day,expected", [
        (3, 5, 5),
        (3, 3, 7),
        (1, 7, 1),
        (6, 1, 5),
    ])
    def test_days_forward(self, target, from_day, expected):
        assert days_forward(target, from_day) == expected

    @pytest.mark.parametrize("target", range(1, 8))
    @pytest.mark.parametrize("from_day", range(1, 8))
    def test_days_forward_range(self, target, from_day):
        assert 1 <= days_forward(target, from_day) <= 7

    def test_academic_wrap(self):
        assert academic_day_after(1, 1) == 2
        assert academic_day_after(6, 1) == 1
        assert academic_day_after(1, 6) == 1
        assert academic_day_after(0, 1) == 1


class TestLabels:
    def test_day_name(self):
        assert day_name(1) == "Понедельник"
        assert day_name(7) == "Воскресенье"
        assert day_name(9) == UNKNOWN_DAY

    def test_custom_names(self):
        assert day_name(1, {1: "Mon"}) == "Mon"

    def test_relative_day_name(self):
        now = datetime(2025, 1, 6, 8, 0)
        assert relative_day_name(datetime(2025, 1, 6, 23, 0), now) == "Сегодня"
        assert relative_day_name(datetime(2025, 1, 7, 1, 0), now) == "Завтра"
        assert relative_day_name(datetime(2025, 1, 5, 1, 0), now) == "Вчера"
        assert relative_day_name(datetime(2025, 1, 9, 9, 0), now) == "Четверг"
