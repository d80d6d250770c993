# fare_engine/services/pricing/service.py
"""
Бизнес-логика Pricing Service.
Оркестрирует расчет: маршрут -> тариф -> повышение -> калькулятор.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone, tzinfo
from typing import Awaitable, TypeVar

from fare_engine.common.constants import TypeMsg
from fare_engine.common.logger import log_info
from fare_engine.core.geo.service import RouteInfo, RoutingProvider
from fare_engine.core.pricing.calculator import FareCalculator
from fare_engine.core.pricing.errors import UpstreamTimeoutError
from fare_engine.core.pricing.repository import PricingConfigStore, SurgeZoneStore
from fare_engine.core.surge.service import SurgeEstimator
from fare_engine.shared.models.pricing import (
    FareEstimate,
    FareEstimateRequest,
    PricingConfig,
    SurgeZone,
)

T = TypeVar("T")


class PricingService:
    """Сервис расчета стоимости поездки."""

    def __init__(
        self,
        config_store: PricingConfigStore,
        zone_store: SurgeZoneStore,
        routing: RoutingProvider,
        surge: SurgeEstimator,
        calculator: FareCalculator,
        tz: tzinfo = timezone.utc,
        route_timeout: float = 5.0,
        config_timeout: float = 2.0,
    ) -> None:
        self._config_store = config_store
        self._zone_store = zone_store
        self._routing = routing
        self._surge = surge
        self._calculator = calculator
        self._tz = tz
        self._route_timeout = route_timeout
        self._config_timeout = config_timeout

    async def _with_deadline(self, upstream: str, call: Awaitable[T], timeout: float) -> T:
        """Ожидает вызов внешней зависимости; истечение таймаута дает UpstreamTimeoutError без повторов."""
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            await log_info(f"{upstream}: таймаут после {timeout:g}с", type_msg=TypeMsg.WARNING)
            raise UpstreamTimeoutError(upstream, timeout) from e

    def _resolve_time(self, time_of_day: datetime | None) -> datetime:
        """Время запроса в часовом поясе сервиса; наивное время считается местным."""
        if time_of_day is None:
            return datetime.now(self._tz)
        if time_of_day.tzinfo is None:
            return time_of_day.replace(tzinfo=self._tz)
        return time_of_day.astimezone(self._tz)

    async def estimate_fare(self, request: FareEstimateRequest) -> FareEstimate:
        """
        Рассчитывает стоимость поездки.

        Raises:
            ConfigNotFoundError: нет активного тарифа для типа автомобиля
            MultipleActiveConfigsError: данные тарифов противоречивы
            InvalidTripGeometryError: маршрутизатор вернул непригодное расстояние или время
            UpstreamTimeoutError: маршрут или тариф не получены за отведенное время
            RoutingError: ошибка провайдера маршрутов
        """
        moment = self._resolve_time(request.time_of_day)

        route: RouteInfo = await self._with_deadline(
            "routing",
            self._routing.route(
                request.pickup_lat,
                request.pickup_lng,
                request.dropoff_lat,
                request.dropoff_lng,
                departure_time=moment,
            ),
            self._route_timeout,
        )

        config = await self._with_deadline(
            "pricing config store",
            self._config_store.get_active_config(request.vehicle_type),
            self._config_timeout,
        )

        surge = await self._surge.estimate_surge(request.pickup_lat, request.pickup_lng, moment)

        estimate = self._calculator.estimate(
            request,
            distance_km=route.distance_km,
            duration_min=route.duration_minutes,
            config=config,
            surge_multiplier=surge,
        )

        await log_info(
            f"Расчет стоимости: {estimate.estimated_fare} {estimate.currency} для {estimate.vehicle_type} "
            f"({estimate.distance} км, {estimate.duration} мин, повышение: {estimate.surge_multiplier}x)",
            type_msg=TypeMsg.INFO,
        )
        return estimate

    async def list_configs(self) -> list[PricingConfig]:
        """Активные тарифы, отсортированные по типу автомобиля."""
        return await self._with_deadline(
            "pricing config store",
            self._config_store.list_active_configs(),
            self._config_timeout,
        )

    async def get_config(self, vehicle_type: str) -> PricingConfig:
        """Активный тариф для типа автомобиля."""
        return await self._with_deadline(
            "pricing config store",
            self._config_store.get_active_config(vehicle_type),
            self._config_timeout,
        )

    async def list_surge_zones(self) -> list[SurgeZone]:
        return await self._with_deadline(
            "surge zone store",
            self._zone_store.list_active_zones(),
            self._config_timeout,
        )
