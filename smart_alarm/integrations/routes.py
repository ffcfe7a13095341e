"""Route building — geocoding, travel time and traffic estimates.

Uses the Yandex Geocoder to turn addresses into coordinates and the public
OSRM server for driving and walking routes. OSRM has no public-transport
profile, so transit trips are estimated from the straight-line distance at
an average 30 km/h and flagged ``is_real_route=False``.

Every route also carries a Yandex Maps link the user can open for the
exact itinerary.

Failures raise RouteError; callers decide what to fall back to.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime

import httpx

from smart_alarm.data.models import RouteResult, RouteStep, TrafficInfo
from smart_alarm.ports.route_port import RouteError

logger = logging.getLogger(__name__)

_GEOCODER_URL = "https://geocode-maps.yandex.ru/1.x/"
_DEFAULT_OSRM_URL = "https://router.project-osrm.org"
_TIMEOUT_SECONDS = 10

_EARTH_RADIUS_KM = 6371
_TRANSIT_KM_PER_MINUTE = 0.5  # ~30 km/h average

# settings.transport_type → route mode
TRANSPORT_MODES = {
    "public": "transit",
    "car": "auto",
    "walk": "pedestrian",
}

_OSRM_PROFILES = {"auto": "driving", "pedestrian": "foot"}
_YANDEX_RTT = {"auto": "auto", "transit": "mt", "pedestrian": "pd"}


def transport_mode(transport_type: str) -> str:
    return TRANSPORT_MODES.get(transport_type, "transit")


# ---------------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------------


async def geocode_address(
    address: str,
    api_key: str,
    timeout: float = _TIMEOUT_SECONDS,
) -> tuple[float, float, str]:
    """Resolve an address to (lat, lon, full_address) via Yandex Geocoder."""
    if not address or not address.strip():
        raise RouteError("No address given")
    if not api_key:
        raise RouteError("Yandex API key is not configured")

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(
                _GEOCODER_URL,
                params={"apikey": api_key, "geocode": address, "format": "json"},
            )
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 403:
            raise RouteError("Invalid Yandex API key") from exc
        raise RouteError(f"Geocoder HTTP {exc.response.status_code}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise RouteError(f"Geocoder request failed: {exc}") from exc

    try:
        members = data["response"]["GeoObjectCollection"]["featureMember"]
    except (AttributeError, KeyError, TypeError) as exc:
        raise RouteError(f"Malformed geocoder response for {address!r}") from exc
    if not members:
        raise RouteError(f"Address not found: {address!r}")

    try:
        geo = members[0]["GeoObject"]
        lon_text, lat_text = geo["Point"]["pos"].split()
        lon, lat = float(lon_text), float(lat_text)
        full_address = (
            geo.get("metaDataProperty", {})
            .get("GeocoderMetaData", {})
            .get("text", address)
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise RouteError(f"Malformed geocoder response for {address!r}") from exc

    logger.info("Geocoded '%s' → %.5f, %.5f", address, lat, lon)
    return lat, lon, full_address


# ---------------------------------------------------------------------------
# Route estimation
# ---------------------------------------------------------------------------


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return _EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def yandex_map_url(
    origin: tuple[float, float], destination: tuple[float, float], mode: str,
) -> str:
    rtt = _YANDEX_RTT.get(mode, "mt")
    return (
        f"https://yandex.ru/maps/?rtext={origin[0]},{origin[1]}"
        f"~{destination[0]},{destination[1]}&rtt={rtt}"
    )


def simple_steps(mode: str, distance: float, duration: int) -> list[RouteStep]:
    """Coarse itinerary for display when only totals are known."""
    if mode == "pedestrian":
        return [RouteStep("1", "walk", "Пешком до пункта назначения", duration, distance)]
    if mode == "auto":
        return [RouteStep("1", "car", "Поездка на автомобиле", duration, distance)]

    walk_time = round(duration * 0.2)
    walk_dist = round(distance * 0.1, 1)
    return [
        RouteStep("1", "walk", "Пешком до остановки", walk_time, walk_dist),
        RouteStep(
            "2", "bus", "Общественный транспорт",
            duration - walk_time * 2, round(distance * 0.8, 1),
        ),
        RouteStep("3", "walk", "Пешком до пункта назначения", walk_time, walk_dist),
    ]


def estimate_transit_route(
    origin: tuple[float, float], destination: tuple[float, float],
) -> RouteResult:
    distance = round(haversine_km(*origin, *destination), 1)
    duration = round(distance / _TRANSIT_KM_PER_MINUTE)
    return RouteResult(
        distance=distance,
        duration=duration,
        mode="transit",
        steps=simple_steps("transit", distance, duration),
        is_real_route=False,
        api_source="Приблизительный расчет",
    )


async def fetch_osrm_route(
    origin: tuple[float, float],
    destination: tuple[float, float],
    mode: str,
    osrm_url: str = _DEFAULT_OSRM_URL,
    timeout: float = _TIMEOUT_SECONDS,
) -> RouteResult:
    """Driving or walking route from OSRM. Coordinates are (lat, lon)."""
    profile = _OSRM_PROFILES.get(mode, "foot")
    # OSRM wants lon,lat
    coords = f"{origin[1]},{origin[0]};{destination[1]},{destination[0]}"
    url = f"{osrm_url}/route/v1/{profile}/{coords}"

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url, params={"overview": "false"})
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise RouteError(f"OSRM request failed: {exc}") from exc

    if not isinstance(data, dict):
        raise RouteError("Malformed OSRM response")
    routes = data.get("routes") or []
    if data.get("code") != "Ok" or not routes:
        raise RouteError(f"OSRM could not build a route: {data.get('code') or 'no routes'}")

    try:
        distance = round(float(routes[0]["distance"]) / 1000, 1)
        duration = round(float(routes[0]["duration"]) / 60)
    except (KeyError, TypeError, ValueError) as exc:
        raise RouteError(f"Malformed OSRM route: {exc}") from exc

    logger.info("OSRM %s route: %.1f km, %d min", profile, distance, duration)

    return RouteResult(
        distance=distance,
        duration=duration,
        mode=mode,
        steps=simple_steps(mode, distance, duration),
        is_real_route=True,
        api_source="OSRM",
    )


async def build_route(
    origin: str,
    destination: str,
    mode: str,
    api_key: str,
    osrm_url: str = _DEFAULT_OSRM_URL,
    timeout: float = _TIMEOUT_SECONDS,
) -> RouteResult:
    """Geocode both addresses and estimate travel between them.

    Raises RouteError on any failure.
    """
    logger.info("Building %s route: '%s' → '%s'", mode, origin, destination)
    from_lat, from_lon, _ = await geocode_address(origin, api_key, timeout)
    to_lat, to_lon, _ = await geocode_address(destination, api_key, timeout)
    start, end = (from_lat, from_lon), (to_lat, to_lon)

    if mode == "transit":
        route = estimate_transit_route(start, end)
    else:
        route = await fetch_osrm_route(start, end, mode, osrm_url, timeout)

    route.map_url = yandex_map_url(start, end, mode)
    return route


class YandexOsrmRouter:
    """RouteProvider backed by Yandex Geocoder + OSRM."""

    def __init__(
        self,
        api_key: str,
        osrm_url: str = _DEFAULT_OSRM_URL,
        timeout: float = _TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self._osrm_url = osrm_url
        self._timeout = timeout

    async def build_route(
        self, origin: str, destination: str, mode: str = "transit",
    ) -> RouteResult:
        return await build_route(
            origin, destination, mode, self._api_key, self._osrm_url, self._timeout,
        )


# ---------------------------------------------------------------------------
# Traffic and mock data
# ---------------------------------------------------------------------------

_TRAFFIC_DESCRIPTIONS = {
    "low": "Дороги свободны",
    "medium": "Средний уровень загруженности",
    "high": "Высокий уровень загруженности",
}


def get_traffic_info(now: datetime) -> TrafficInfo:
    """Rough congestion estimate by hour of day (no live traffic data)."""
    hour = now.hour
    if 7 <= hour <= 10 or 17 <= hour <= 20:
        level, extra = "high", 10
    elif 11 <= hour <= 16:
        level, extra = "medium", 5
    else:
        level, extra = "low", 0
    return TrafficInfo(
        level=level, additional_time=extra, description=_TRAFFIC_DESCRIPTIONS[level],
    )


def get_mock_route_data() -> RouteResult:
    """Fixed sample route used when nothing better is available."""
    return RouteResult(
        distance=12.5,
        duration=35,
        mode="transit",
        steps=[
            RouteStep("1", "walk", 'Пешком до остановки "Центральная"', 5, 0.4),
            RouteStep("2", "bus", 'Автобус №15 до остановки "Университет"', 25, 11.8),
            RouteStep("3", "walk", "Пешком до главного корпуса", 5, 0.3),
        ],
        traffic_info=TrafficInfo(
            level="medium",
            additional_time=5,
            description=_TRAFFIC_DESCRIPTIONS["medium"],
        ),
        is_real_route=False,
        api_source="mock",
    )
