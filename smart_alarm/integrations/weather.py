"""OpenWeatherMap integration — current weather and morning hints.

Only the current-conditions endpoint is used; recommendations are derived
locally from temperature, precipitation, wind and humidity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.openweathermap.org/data/2.5"
_TIMEOUT_SECONDS = 10


class WeatherError(Exception):
    """Raised when current weather cannot be fetched."""


@dataclass
class Weather:
    temperature: int               # °C, rounded
    feels_like: int
    condition: str
    condition_code: int            # OpenWeatherMap condition id
    humidity: int                  # %
    wind_speed: float              # m/s
    rain: float = 0.0              # mm over the last 1h/3h
    snow: float = 0.0
    city_name: str = ""


def _precipitation(block: dict | None) -> float:
    if not block:
        return 0.0
    return float(block.get("1h") or block.get("3h") or 0)


def parse_weather(data: dict) -> Weather:
    condition = (data.get("weather") or [{}])[0]
    main = data["main"]
    return Weather(
        temperature=round(main["temp"]),
        feels_like=round(main.get("feels_like", main["temp"])),
        condition=condition.get("description", ""),
        condition_code=int(condition.get("id", 800)),
        humidity=int(main.get("humidity", 0)),
        wind_speed=float(data.get("wind", {}).get("speed", 0)),
        rain=_precipitation(data.get("rain")),
        snow=_precipitation(data.get("snow")),
        city_name=data.get("name", ""),
    )


async def fetch_weather_by_city(
    city: str, api_key: str, timeout: float = _TIMEOUT_SECONDS,
) -> Weather:
    """Current weather for a city name. Raises WeatherError on any failure."""
    if not city or not city.strip():
        raise WeatherError("No city given")
    if not api_key:
        raise WeatherError("OpenWeatherMap API key is not configured")

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(
                f"{_BASE_URL}/weather",
                params={"q": city, "appid": api_key, "units": "metric", "lang": "ru"},
            )
            resp.raise_for_status()
            return parse_weather(resp.json())
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise WeatherError(f"City not found: {city!r}") from exc
        raise WeatherError(f"Weather HTTP {exc.response.status_code}") from exc
    except (httpx.HTTPError, KeyError, ValueError) as exc:
        raise WeatherError(f"Weather request failed: {exc}") from exc


def get_weather_recommendations(weather: Weather) -> list[str]:
    """What to wear or take along, in Russian."""
    hints: list[str] = []

    if weather.temperature < 0:
        hints.append("Оденьтесь очень тепло - мороз")
    elif weather.temperature < 10:
        sign = "+" if weather.temperature > 0 else ""
        hints.append(f"Оденьтесь теплее - {sign}{weather.temperature}°C")
    elif weather.temperature > 25:
        hints.append("Легкая одежда - будет жарко")

    if weather.rain > 0 or 500 <= weather.condition_code < 600:
        hints.append("Возьмите зонт - ожидается дождь")
    if weather.snow > 0 or 600 <= weather.condition_code < 700:
        hints.append("Будьте осторожны - снег на дорогах")

    if weather.wind_speed > 10:
        hints.append("Сильный ветер - оденьтесь теплее")
    if weather.humidity > 80:
        hints.append("Высокая влажность - возможна духота")

    if not hints:
        hints.append("Хорошая погода для прогулки")
    return hints


def get_mock_weather_data() -> Weather:
    return Weather(
        temperature=15,
        feels_like=13,
        condition="Облачно с прояснениями",
        condition_code=802,
        humidity=65,
        wind_speed=5,
        city_name="Москва",
    )
