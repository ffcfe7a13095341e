"""Shared test fixtures and configuration.

Sets up environment variables so smart_alarm.config never reaches the
network-backed providers, and provides common fixtures like a temp store.
"""

import os

# Patch env vars BEFORE any smart_alarm imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "Europe/Moscow")
os.environ["YANDEX_API_KEY"] = ""
os.environ["OPENWEATHER_API_KEY"] = ""

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_smart_alarm.db")


@pytest.fixture
def store(tmp_db_path):
    """Return an AppStore backed by a temp file."""
    from smart_alarm.data.store import AppStore
    return AppStore(db_path=tmp_db_path)


@pytest.fixture
def raw_schedule():
    """A small feed in the rasp.dmami.ru shape."""
    return {
        "grid": {
            "1": {
                "1": [{
                    "sbj": "Математика",
                    "type": "Лекция",
                    "teacher": "Иванов И.И.",
                    "shortRooms": ["пр-123"],
                }],
                "3": [{
                    "sbj": "Физика",
                    "type": "Практика",
                    "teacher": "",
                    "auditories": [{"title": "<b>ПК-401</b>"}],
                }],
            },
            "2": {
                "2": [{
                    "sbj": "История",
                    "type": "Семинар",
                    "teacher": "Петров П.П.",
                    "df": "2025-01-01",
                    "dt": "2025-01-10",
                }],
            },
        }
    }
