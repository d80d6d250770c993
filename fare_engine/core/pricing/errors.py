# fare_engine/core/pricing/errors.py
"""
Иерархия ошибок расчета стоимости.
Каждая ошибка несет HTTP статус и код ошибки для ответа.
"""

from __future__ import annotations

from typing import Any


class PricingError(Exception):
    """Базовый класс ошибок движка расчета."""

    status_code: int = 500
    error_code: str = "PRICING_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigNotFoundError(PricingError):
    """Нет активного тарифа для типа автомобиля."""

    status_code = 404
    error_code = "CONFIG_NOT_FOUND"

    def __init__(self, vehicle_type: str) -> None:
        super().__init__(
            f"Pricing config not found for vehicle type: {vehicle_type}",
            {"vehicle_type": vehicle_type},
        )
        self.vehicle_type = vehicle_type


class MultipleActiveConfigsError(PricingError):
    """Больше одного активного тарифа для типа автомобиля (нарушение целостности данных)."""

    status_code = 500
    error_code = "MULTIPLE_ACTIVE_CONFIGS"

    def __init__(self, vehicle_type: str, count: int) -> None:
        super().__init__(
            f"{count} active pricing configs found for vehicle type: {vehicle_type}",
            {"vehicle_type": vehicle_type, "active_count": count},
        )
        self.vehicle_type = vehicle_type
        self.count = count


class InvalidTripGeometryError(PricingError):
    """Отрицательное или не конечное расстояние или длительность поездки."""

    status_code = 400
    error_code = "INVALID_TRIP_GEOMETRY"


class UpstreamTimeoutError(PricingError):
    """Маршрутизация или загрузка тарифа не уложилась в таймаут. Запрос можно повторить."""

    status_code = 503
    error_code = "UPSTREAM_TIMEOUT"

    def __init__(self, upstream: str, timeout: float) -> None:
        super().__init__(
            f"{upstream} did not respond within {timeout:g}s",
            {"upstream": upstream, "timeout_seconds": timeout},
        )
        self.upstream = upstream
        self.timeout = timeout


class RoutingError(PricingError):
    """Провайдер маршрутов не смог построить маршрут."""

    status_code = 502
    error_code = "ROUTING_FAILED"
