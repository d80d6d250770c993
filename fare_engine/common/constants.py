# fare_engine/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class VehicleType(str, Enum):
    """Классы автомобилей с тарифами по умолчанию."""
    ECONOMY = "economy"
    COMFORT = "comfort"
    PREMIUM = "premium"
    XL = "xl"


# Множитель «без повышения»
NO_SURGE = 1.0

# Радиус Земли для формулы гаверсинусов (км)
EARTH_RADIUS_KM = 6371.0
