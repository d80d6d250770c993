# fare_engine/core/__init__.py
"""
Доменный слой.
Расчет стоимости, хранилища тарифов, повышение и маршруты.
"""

from fare_engine.core.pricing import FareCalculator, PricingError
from fare_engine.core.surge import SurgeEstimator
from fare_engine.core.geo import RouteInfo

__all__ = [
    "FareCalculator",
    "PricingError",
    "SurgeEstimator",
    "RouteInfo",
]
