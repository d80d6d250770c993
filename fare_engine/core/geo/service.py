# fare_engine/core/geo/service.py
"""
Провайдеры маршрутов.
Расстояние и время между точками посадки и высадки: оценка по haversine
или Google Maps Directions API.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Protocol

import httpx

from fare_engine.common.constants import EARTH_RADIUS_KM, TypeMsg
from fare_engine.common.logger import log_debug, log_error, log_info
from fare_engine.core.pricing.errors import RoutingError, UpstreamTimeoutError


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Расстояние по большому кругу между двумя точками (км), формула haversine.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


@dataclass
class RouteInfo:
    """Маршрут между двумя точками."""
    distance_km: float
    duration_minutes: float
    polyline: str = ""  # Закодированная polyline, только Google


class RoutingProvider(Protocol):
    """Источник расстояния и времени поездки."""

    async def route(
        self,
        pickup_lat: float,
        pickup_lng: float,
        dropoff_lat: float,
        dropoff_lng: float,
        departure_time: datetime | None = None,
    ) -> RouteInfo: ...

    async def close(self) -> None: ...


def traffic_multiplier(hour: int) -> float:
    """Коэффициент времени в пути по местному часу: в час пик медленнее, ночью быстрее."""
    if 7 <= hour <= 9 or 17 <= hour <= 19:
        return 1.5
    if hour >= 22 or hour <= 5:
        return 0.8
    return 1.0


class HaversineRoutingProvider:
    """
    Оценка маршрута без внешних сервисов.

    Дорожное расстояние равно прямому, умноженному на городской коэффициент объезда.
    Длительность считается по средней скорости с поправкой на трафик при отправлении.
    """

    def __init__(
        self,
        road_distance_factor: float = 1.3,
        average_speed_kmh: float = 30.0,
        tz: tzinfo | None = None,
    ) -> None:
        """
        Args:
            road_distance_factor: Отношение дорожного расстояния к прямому
            average_speed_kmh: Средняя скорость в городе без пробок
            tz: Часовой пояс для часов пик (пояс времени отправления, если None)
        """
        self._road_distance_factor = road_distance_factor
        self._average_speed_kmh = average_speed_kmh
        self._tz = tz

    async def route(
        self,
        pickup_lat: float,
        pickup_lng: float,
        dropoff_lat: float,
        dropoff_lng: float,
        departure_time: datetime | None = None,
    ) -> RouteInfo:
        straight = haversine_km(pickup_lat, pickup_lng, dropoff_lat, dropoff_lng)
        distance_km = round(straight * self._road_distance_factor, 2)

        factor = 1.0
        if departure_time is not None:
            local = departure_time.astimezone(self._tz) if self._tz and departure_time.tzinfo else departure_time
            factor = traffic_multiplier(local.hour)

        duration_minutes = round(distance_km / (self._average_speed_kmh / factor) * 60, 2)

        await log_debug(f"Маршрут haversine: {distance_km} км, {duration_minutes} мин (трафик x{factor})")
        return RouteInfo(distance_km=distance_km, duration_minutes=duration_minutes)

    async def close(self) -> None:
        return None


class GoogleMapsRoutingProvider:
    """
    Маршруты через Google Maps Directions API.
    Ошибки пробрасываются без fallback: для расчета нужен реальный маршрут.
    """

    DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

    def __init__(
        self,
        api_key: str | None = None,
        language: str = "en",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            api_key: API ключ Google Maps (из конфига, если None)
            language: Язык ответа
            timeout: Таймаут HTTP (секунды)
            client: Преднастроенный HTTP клиент
        """
        if api_key is None:
            from fare_engine.config import settings
            api_key = settings.google_maps.GOOGLE_MAPS_API_KEY
            language = settings.google_maps.GOOGLE_MAPS_LANGUAGE

        self._api_key = api_key
        self._language = language
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def route(
        self,
        pickup_lat: float,
        pickup_lng: float,
        dropoff_lat: float,
        dropoff_lng: float,
        departure_time: datetime | None = None,
    ) -> RouteInfo:
        """
        Получает автомобильный маршрут.

        Raises:
            UpstreamTimeoutError: API не ответил вовремя
            RoutingError: нет ключа, ошибка HTTP или маршрут не найден
        """
        if not self._api_key:
            raise RoutingError("Google Maps API key is not configured")

        params = {
            "origin": f"{pickup_lat},{pickup_lng}",
            "destination": f"{dropoff_lat},{dropoff_lng}",
            "mode": "driving",
            "key": self._api_key,
            "language": self._language,
        }
        # Directions принимает только текущее или будущее время отправления
        if departure_time is not None and departure_time.tzinfo and departure_time > datetime.now(timezone.utc):
            params["departure_time"] = str(int(departure_time.timestamp()))

        try:
            response = await self._client.get(self.DIRECTIONS_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            await log_error(f"Таймаут Directions API: {e}")
            raise UpstreamTimeoutError("routing", self._timeout) from e
        except (httpx.HTTPError, ValueError) as e:
            await log_error(f"Ошибка запроса к Directions API: {e}")
            raise RoutingError(f"Directions API request failed: {e}") from e

        status = data.get("status")
        if status != "OK" or not data.get("routes"):
            await log_info(
                f"Маршрут не найден: ({pickup_lat},{pickup_lng}) -> ({dropoff_lat},{dropoff_lng}), статус {status}",
                type_msg=TypeMsg.WARNING,
            )
            raise RoutingError("No route found", {"status": status})

        route = data["routes"][0]
        leg = route["legs"][0]

        # Метры -> км
        distance_km = round(leg["distance"]["value"] / 1000, 2)

        # Секунды -> минуты, с учетом трафика, если доступно
        duration_s = leg.get("duration_in_traffic", leg["duration"])["value"]
        duration_minutes = round(duration_s / 60, 2)

        polyline = route.get("overview_polyline", {}).get("points", "")

        return RouteInfo(
            distance_km=distance_km,
            duration_minutes=duration_minutes,
            polyline=polyline,
        )
