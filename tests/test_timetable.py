"""Tests for smart_alarm.integrations.timetable — the rasp.dmami.ru feed."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from smart_alarm.integrations.timetable import DmamiScheduleSource, fetch_schedule
from smart_alarm.ports.schedule_port import ScheduleFetchError


def _response(text, cookie=None):
    mock_resp = MagicMock()
    mock_resp.text = text
    mock_resp.headers = {"set-cookie": cookie} if cookie else {}
    mock_resp.url = "https://rasp.dmami.ru/site/group?group=231-324&session=0"
    mock_resp.raise_for_status = MagicMock()
    return mock_resp


def _mock_client(*responses, side_effect=None):
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client.get = AsyncMock(side_effect=side_effect or list(responses))
    return mock_client


class TestFetchSchedule:
    @pytest.mark.asyncio
    async def test_json_on_first_request(self, raw_schedule):
        mock_client = _mock_client(_response(json.dumps(raw_schedule)))

        with patch("smart_alarm.integrations.timetable.httpx.AsyncClient", return_value=mock_client):
            result = await fetch_schedule(" 231-324 ")

        assert result == raw_schedule
        assert mock_client.get.await_count == 1
        assert mock_client.get.call_args.kwargs["params"] == {"group": "231-324", "session": "0"}

    @pytest.mark.asyncio
    async def test_retries_with_session_cookie(self, raw_schedule):
        mock_client = _mock_client(
            _response("<html>loading</html>", cookie="session=abc; path=/; HttpOnly"),
            _response(json.dumps(raw_schedule)),
        )

        with patch("smart_alarm.integrations.timetable.httpx.AsyncClient", return_value=mock_client):
            result = await fetch_schedule("231-324")

        assert result == raw_schedule
        assert mock_client.get.await_count == 2
        headers = mock_client.get.call_args.kwargs["headers"]
        assert headers["Cookie"] == "session=abc"
        assert headers["Referer"].startswith("https://rasp.dmami.ru/site/group")

    @pytest.mark.asyncio
    async def test_blank_group_raises(self):
        with pytest.raises(ScheduleFetchError):
            await fetch_schedule("")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        mock_client = _mock_client(side_effect=httpx.ConnectError("Connection refused"))

        with patch("smart_alarm.integrations.timetable.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(ScheduleFetchError, match="расписание"):
                await fetch_schedule("231-324")

    @pytest.mark.asyncio
    async def test_second_response_not_json_raises(self):
        mock_client = _mock_client(_response("<html/>"), _response("<html>still html</html>"))

        with patch("smart_alarm.integrations.timetable.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(ScheduleFetchError, match="not JSON"):
                await fetch_schedule("231-324")


class TestDmamiScheduleSource:
    @pytest.mark.asyncio
    async def test_delegates(self):
        with patch(
            "smart_alarm.integrations.timetable.fetch_schedule",
            AsyncMock(return_value={"grid": {}}),
        ) as mock_fetch:
            source = DmamiScheduleSource("https://rasp.test", 3)
            assert await source.fetch_schedule("231-324") == {"grid": {}}

        mock_fetch.assert_awaited_once_with("231-324", "https://rasp.test", 3)
