# fare_engine/core/geo/__init__.py
"""
Провайдеры маршрутов.
Оценка по haversine или Google Maps Directions.
"""

from fare_engine.core.geo.service import (
    RouteInfo,
    RoutingProvider,
    HaversineRoutingProvider,
    GoogleMapsRoutingProvider,
    haversine_km,
)

__all__ = [
    "RouteInfo",
    "RoutingProvider",
    "HaversineRoutingProvider",
    "GoogleMapsRoutingProvider",
    "haversine_km",
]
