# fare_engine/shared/models/__init__.py
"""
Pydantic модели API расчета стоимости.
"""

from fare_engine.shared.models.pricing import (
    PricingConfig,
    FareEstimateRequest,
    FareBreakdown,
    FareEstimate,
    SurgeInfo,
    SurgeZone,
)
from fare_engine.shared.models.common import (
    ErrorResponse,
    HealthStatus,
)

__all__ = [
    # Расчет стоимости
    "PricingConfig",
    "FareEstimateRequest",
    "FareBreakdown",
    "FareEstimate",
    "SurgeInfo",
    "SurgeZone",
    # Общие
    "ErrorResponse",
    "HealthStatus",
]
