# fare_engine/core/pricing/defaults.py
"""
Начальные данные: тарифы по умолчанию (TZS) и примеры зон повышенного спроса для Дар-эс-Салама.
"""

from __future__ import annotations

from fare_engine.common.constants import VehicleType
from fare_engine.shared.models.pricing import PricingConfig, SurgeZone


def default_pricing_configs() -> list[PricingConfig]:
    """Тарифы, создаваемые для типов автомобилей без тарифа."""
    return [
        PricingConfig(
            vehicle_type=VehicleType.ECONOMY.value,
            base_fare=2000,
            per_km_rate=1500,
            per_minute_rate=100,
            minimum_fare=3000,
            booking_fee=500,
            cancellation_fee=1000,
        ),
        PricingConfig(
            vehicle_type=VehicleType.COMFORT.value,
            base_fare=3000,
            per_km_rate=2000,
            per_minute_rate=150,
            minimum_fare=5000,
            booking_fee=500,
            cancellation_fee=1500,
        ),
        PricingConfig(
            vehicle_type=VehicleType.PREMIUM.value,
            base_fare=5000,
            per_km_rate=3000,
            per_minute_rate=200,
            minimum_fare=8000,
            booking_fee=1000,
            cancellation_fee=2000,
        ),
        PricingConfig(
            vehicle_type=VehicleType.XL.value,
            base_fare=4000,
            per_km_rate=2500,
            per_minute_rate=180,
            minimum_fare=6000,
            booking_fee=800,
            cancellation_fee=1500,
        ),
    ]


def default_surge_zones() -> list[SurgeZone]:
    """Постоянные зоны повышенного спроса."""
    return [
        SurgeZone(
            name="Mikocheni Business District",
            center_latitude=-6.7735,
            center_longitude=39.2395,
            radius_km=2.0,
            surge_multiplier=1.2,
        ),
        SurgeZone(
            name="City Center (Posta)",
            center_latitude=-6.8160,
            center_longitude=39.2803,
            radius_km=2.5,
            surge_multiplier=1.3,
        ),
        SurgeZone(
            name="Mlimani City Area",
            center_latitude=-6.7730,
            center_longitude=39.2120,
            radius_km=1.5,
            surge_multiplier=1.2,
        ),
    ]
