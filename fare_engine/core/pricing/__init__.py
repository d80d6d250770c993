# fare_engine/core/pricing/__init__.py
"""
Домен расчета стоимости.
Калькулятор, округление сумм, иерархия ошибок и хранилища тарифов.
"""

from fare_engine.core.pricing.calculator import FareCalculator
from fare_engine.core.pricing.errors import (
    PricingError,
    ConfigNotFoundError,
    MultipleActiveConfigsError,
    InvalidTripGeometryError,
    UpstreamTimeoutError,
    RoutingError,
)
from fare_engine.core.pricing.money import round_money
from fare_engine.core.pricing.repository import (
    PricingConfigStore,
    SurgeZoneStore,
    InMemoryPricingConfigStore,
    InMemorySurgeZoneStore,
    PostgresPricingConfigStore,
    PostgresSurgeZoneStore,
)

__all__ = [
    "FareCalculator",
    "PricingError",
    "ConfigNotFoundError",
    "MultipleActiveConfigsError",
    "InvalidTripGeometryError",
    "UpstreamTimeoutError",
    "RoutingError",
    "round_money",
    "PricingConfigStore",
    "SurgeZoneStore",
    "InMemoryPricingConfigStore",
    "InMemorySurgeZoneStore",
    "PostgresPricingConfigStore",
    "PostgresSurgeZoneStore",
]
