# fare_engine/core/pricing/calculator.py
"""
Калькулятор стоимости поездки.
Чистая функция от геометрии поездки, тарифа и повышающего коэффициента.
"""

from __future__ import annotations

import math

from fare_engine.common.constants import NO_SURGE
from fare_engine.core.pricing.errors import InvalidTripGeometryError
from fare_engine.core.pricing.money import round_money
from fare_engine.shared.models.pricing import (
    FareBreakdown,
    FareEstimate,
    FareEstimateRequest,
    PricingConfig,
)


def _check_trip_value(name: str, value: float) -> None:
    """Отклоняет значения, которые может вернуть сбойный маршрутизатор."""
    if not math.isfinite(value) or value < 0:
        raise InvalidTripGeometryError(
            f"Trip {name} must be a finite non-negative number, got {value!r}",
            {name: str(value)},
        )


class FareCalculator:
    """
    Рассчитывает детализацию стоимости:

        subtotal = base_fare + distance_km * per_km_rate + duration_min * per_minute_rate
        floored  = max(subtotal, minimum_fare)
        total    = floored * surge_multiplier + booking_fee

    Статьи детализации округляются независимо; итог округляется один раз,
    из неокругленных промежуточных значений.
    """

    def __init__(self, currency: str) -> None:
        self._currency = currency

    @property
    def currency(self) -> str:
        return self._currency

    def estimate(
        self,
        request: FareEstimateRequest,
        distance_km: float,
        duration_min: float,
        config: PricingConfig,
        surge_multiplier: float,
    ) -> FareEstimate:
        """
        Рассчитывает стоимость одной поездки.

        Args:
            request: Исходный запрос расчета
            distance_km: Расстояние маршрута (км)
            duration_min: Длительность маршрута (минуты)
            config: Активный тариф для request.vehicle_type
            surge_multiplier: Коэффициент >= 1.0, 1.0 означает без повышения

        Raises:
            InvalidTripGeometryError: расстояние или длительность отрицательны или не конечны
            ValueError: коэффициент меньше 1.0 или не конечен
        """
        _check_trip_value("distance", distance_km)
        _check_trip_value("duration", duration_min)
        if not math.isfinite(surge_multiplier) or surge_multiplier < NO_SURGE:
            raise ValueError(f"Коэффициент повышения должен быть >= 1.0, получено {surge_multiplier!r}")

        distance_fare = distance_km * config.per_km_rate
        time_fare = duration_min * config.per_minute_rate
        subtotal = config.base_fare + distance_fare + time_fare
        floored_subtotal = max(subtotal, config.minimum_fare)
        surge_fare = floored_subtotal * (surge_multiplier - NO_SURGE)
        total = round_money(floored_subtotal * surge_multiplier + config.booking_fee)

        breakdown = FareBreakdown(
            base_fare=round_money(config.base_fare),
            distance_fare=round_money(distance_fare),
            time_fare=round_money(time_fare),
            surge_fare=round_money(surge_fare),
            booking_fee=round_money(config.booking_fee),
            total=total,
        )

        return FareEstimate(
            estimated_fare=total,
            distance=distance_km,
            duration=duration_min,
            surge_multiplier=surge_multiplier,
            breakdown=breakdown,
            vehicle_type=request.vehicle_type,
            currency=self._currency,
        )
