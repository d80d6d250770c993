# fare_engine/services/pricing/__init__.py
"""
Сервис расчета стоимости: оркестрация и HTTP API.
"""

from fare_engine.services.pricing.service import PricingService

__all__ = [
    "PricingService",
]
