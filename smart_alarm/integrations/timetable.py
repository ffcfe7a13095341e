"""University timetable feed — rasp.dmami.ru.

The site answers the first request with an HTML page plus a session cookie;
repeating the request with that cookie returns the JSON grid. Sometimes the
first response is already JSON, in which case it is used directly.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from smart_alarm.ports.schedule_port import ScheduleFetchError

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://rasp.dmami.ru/site/group"
_TIMEOUT_SECONDS = 10


def _try_json(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


async def fetch_schedule(
    group_number: str,
    base_url: str = _DEFAULT_BASE_URL,
    timeout: float = _TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """Download the raw timetable of a student group (e.g. "231-324").

    Raises ScheduleFetchError when the group is blank or the feed cannot be
    fetched or decoded.
    """
    if not group_number or not group_number.strip():
        raise ScheduleFetchError("No group number given")

    group = group_number.strip()
    params = {"group": group, "session": "0"}

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            first = await client.get(
                base_url,
                params=params,
                headers={
                    "User-Agent": "Mozilla/5.0",
                    "Referer": f"https://rasp.dmami.ru/?{group}",
                },
            )
            data = _try_json(first.text)
            if data is not None:
                logger.info("Timetable for %s fetched in one request", group)
                return data

            cookie = (first.headers.get("set-cookie") or "").split(";")[0]
            second = await client.get(
                base_url,
                params=params,
                headers={
                    "User-Agent": "Mozilla/5.0",
                    "Referer": str(first.url),
                    "Cookie": cookie,
                },
            )
            second.raise_for_status()
            data = _try_json(second.text)
    except httpx.HTTPError as exc:
        logger.warning("Timetable fetch failed for %s: %s", group, exc)
        raise ScheduleFetchError(
            "Не удалось загрузить расписание. Проверьте номер группы и интернет-соединение."
        ) from exc

    if data is None:
        raise ScheduleFetchError(f"Timetable response for {group} is not JSON")

    logger.info("Timetable for %s fetched with session cookie", group)
    return data


class DmamiScheduleSource:
    """ScheduleSource backed by rasp.dmami.ru."""

    def __init__(self, base_url: str = _DEFAULT_BASE_URL, timeout: float = _TIMEOUT_SECONDS) -> None:
        self._base_url = base_url
        self._timeout = timeout

    async def fetch_schedule(self, group_number: str) -> dict[str, Any]:
        return await fetch_schedule(group_number, self._base_url, self._timeout)
