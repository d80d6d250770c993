# fare_engine/core/surge/service.py
"""
Оценка повышающего коэффициента.
Политики превращают (точку посадки, время) в SurgeInfo; оценщик оборачивает
настроенную политику, ограничивает результат сверху и при любой ошибке считает без повышения.
"""

from __future__ import annotations

import asyncio
import math
from datetime import datetime, timezone, tzinfo
from typing import Iterable, Protocol

from fare_engine.common.constants import NO_SURGE, TypeMsg
from fare_engine.common.logger import log_error, log_info, log_warning
from fare_engine.core.geo.service import haversine_km
from fare_engine.core.pricing.repository import SurgeZoneStore
from fare_engine.infra.redis_client import RedisClient
from fare_engine.shared.models.pricing import SurgeInfo


class SurgePolicy(Protocol):
    """Стратегия расчета коэффициента для точки посадки в заданный момент."""

    async def evaluate(self, lat: float, lng: float, time_of_day: datetime) -> SurgeInfo: ...


# =============================================================================
# ПОЛИТИКИ
# =============================================================================

class NoSurgePolicy:
    """Никогда не повышает стоимость."""

    async def evaluate(self, lat: float, lng: float, time_of_day: datetime) -> SurgeInfo:
        return SurgeInfo.no_surge()


class SurgeZonePolicy:
    """
    Повышение по зонам.
    Коэффициент берется из первой активной зоны, которая содержит точку посадки и открыта по времени.
    """

    def __init__(self, store: SurgeZoneStore) -> None:
        self._store = store

    async def evaluate(self, lat: float, lng: float, time_of_day: datetime) -> SurgeInfo:
        for zone in await self._store.list_active_zones():
            distance = haversine_km(lat, lng, zone.center_latitude, zone.center_longitude)
            if distance > zone.radius_km:
                continue
            if not zone.is_open_at(time_of_day):
                continue

            await log_info(
                f"Точка в зоне повышенного спроса: {zone.name} ({zone.surge_multiplier}x)",
                type_msg=TypeMsg.DEBUG,
            )
            return SurgeInfo(
                multiplier=zone.surge_multiplier,
                is_surging=zone.surge_multiplier > NO_SURGE,
                zone_name=zone.name,
                reason="High demand area",
            )

        return SurgeInfo.no_surge()


class TimeOfDayPolicy:
    """
    Повышение в часы пик по местному времени:

        Fri, Sat 21:00-03:59  -> 1.3
        Mon-Fri  07:00-09:59, 17:00-19:59  -> 1.2
    """

    WEEKEND_NIGHT_MULTIPLIER = 1.3
    RUSH_HOUR_MULTIPLIER = 1.2

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz

    def multiplier_at(self, moment: datetime) -> float:
        local = moment.astimezone(self._tz) if self._tz and moment.tzinfo else moment
        hour = local.hour
        weekday = local.weekday()  # 0 = понедельник

        if weekday in (4, 5) and (21 <= hour <= 23 or 0 <= hour <= 3):
            return self.WEEKEND_NIGHT_MULTIPLIER

        if weekday <= 4 and (7 <= hour <= 9 or 17 <= hour <= 19):
            return self.RUSH_HOUR_MULTIPLIER

        return NO_SURGE

    async def evaluate(self, lat: float, lng: float, time_of_day: datetime) -> SurgeInfo:
        multiplier = self.multiplier_at(time_of_day)
        if multiplier <= NO_SURGE:
            return SurgeInfo.no_surge()
        return SurgeInfo(multiplier=multiplier, is_surging=True, reason="Peak hours")


class RedisSurgeSignalPolicy:
    """
    Коэффициент, публикуемый конвейером спроса для каждой гео-ячейки.

    Key: surge:{lat:.2f}:{lng:.2f}, value: {"multiplier": float, "reason": str | null}.
    """

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis

    @staticmethod
    def cell_key(lat: float, lng: float) -> str:
        return f"surge:{lat:.2f}:{lng:.2f}"

    async def evaluate(self, lat: float, lng: float, time_of_day: datetime) -> SurgeInfo:
        data = await self._redis.get_json(self.cell_key(lat, lng))
        if not isinstance(data, dict) or "multiplier" not in data:
            return SurgeInfo.no_surge()

        multiplier = float(data["multiplier"])
        return SurgeInfo(
            multiplier=multiplier,
            is_surging=multiplier > NO_SURGE,
            reason=data.get("reason") or "Demand signal",
        )


class CompositeSurgePolicy:
    """Опрашивает политики по порядку; побеждает первая, сообщившая о повышении."""

    def __init__(self, policies: Iterable[SurgePolicy]) -> None:
        self._policies = list(policies)

    async def evaluate(self, lat: float, lng: float, time_of_day: datetime) -> SurgeInfo:
        for policy in self._policies:
            info = await policy.evaluate(lat, lng, time_of_day)
            if info.is_surging:
                return info
        return SurgeInfo.no_surge()


def build_surge_policy(
    names: Iterable[str],
    *,
    zone_store: SurgeZoneStore | None = None,
    redis: RedisClient | None = None,
    tz: tzinfo | None = None,
) -> SurgePolicy:
    """
    Собирает цепочку политик по именам из конфига.

    Args:
        names: Упорядоченное подмножество none, zones, time_of_day, redis
        zone_store: Обязателен для "zones"
        redis: Обязателен для "redis"
        tz: Местный часовой пояс для "time_of_day"
    """
    policies: list[SurgePolicy] = []

    for name in names:
        if name == "none":
            continue
        if name == "zones":
            if zone_store is None:
                raise ValueError("Политике 'zones' нужно хранилище зон")
            policies.append(SurgeZonePolicy(zone_store))
        elif name == "time_of_day":
            policies.append(TimeOfDayPolicy(tz))
        elif name == "redis":
            if redis is None:
                raise ValueError("Политике 'redis' нужен Redis клиент")
            policies.append(RedisSurgeSignalPolicy(redis))
        else:
            raise ValueError(f"Неизвестная политика повышения: {name}")

    if not policies:
        return NoSurgePolicy()
    if len(policies) == 1:
        return policies[0]
    return CompositeSurgePolicy(policies)


# =============================================================================
# ОЦЕНЩИК
# =============================================================================

class SurgeEstimator:
    """
    Определяет повышающий коэффициент для расчета.

    Не выбрасывает исключений: сбой или зависание политики не должны блокировать расчет.
    """

    def __init__(
        self,
        policy: SurgePolicy,
        max_multiplier: float = 5.0,
        timeout: float = 1.0,
    ) -> None:
        """
        Args:
            policy: Стратегия повышения
            max_multiplier: Верхняя граница для каждого результата
            timeout: Таймаут одного вызова политики (секунды)
        """
        self._policy = policy
        self._max_multiplier = max_multiplier
        self._timeout = timeout

    async def estimate_surge_info(
        self,
        pickup_lat: float,
        pickup_lng: float,
        time_of_day: datetime | None = None,
    ) -> SurgeInfo:
        moment = time_of_day or datetime.now(timezone.utc)

        try:
            info = await asyncio.wait_for(
                self._policy.evaluate(pickup_lat, pickup_lng, moment),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            await log_warning(f"Политика повышения не ответила за {self._timeout:g}с, расчет без повышения")
            return SurgeInfo.no_surge()
        except Exception as e:
            await log_error(f"Ошибка политики повышения, расчет без повышения: {e}", exc_info=True)
            return SurgeInfo.no_surge()

        if not math.isfinite(info.multiplier) or info.multiplier < NO_SURGE:
            await log_warning(f"Политика повышения вернула некорректный коэффициент {info.multiplier!r}, игнорируем")
            return SurgeInfo.no_surge()

        if info.multiplier > self._max_multiplier:
            await log_warning(f"Коэффициент {info.multiplier} ограничен до {self._max_multiplier}")
            info = info.model_copy(update={"multiplier": self._max_multiplier})

        return info

    async def estimate_surge(
        self,
        pickup_lat: float,
        pickup_lng: float,
        time_of_day: datetime | None = None,
    ) -> float:
        """Коэффициент >= 1.0 для точки посадки в time_of_day (сейчас, если None)."""
        info = await self.estimate_surge_info(pickup_lat, pickup_lng, time_of_day)
        return info.multiplier
