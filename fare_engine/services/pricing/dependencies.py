# fare_engine/services/pricing/dependencies.py
"""
Зависимости Pricing Service.
Создаются один раз в lifespan и передаются в роуты через FastAPI Depends.
"""

from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo

from fare_engine.common.constants import TypeMsg
from fare_engine.common.logger import log_info
from fare_engine.config import Settings, get_settings
from fare_engine.core.geo.service import (
    GoogleMapsRoutingProvider,
    HaversineRoutingProvider,
    RoutingProvider,
)
from fare_engine.core.pricing.calculator import FareCalculator
from fare_engine.core.pricing.repository import (
    InMemoryPricingConfigStore,
    InMemorySurgeZoneStore,
    PostgresPricingConfigStore,
    PostgresSurgeZoneStore,
    PricingConfigStore,
    SurgeZoneStore,
)
from fare_engine.core.surge.service import SurgeEstimator, build_surge_policy
from fare_engine.infra.database import DatabaseManager, close_db, init_db
from fare_engine.infra.redis_client import RedisClient, close_redis, init_redis
from fare_engine.services.pricing.service import PricingService


_db: Optional[DatabaseManager] = None
_redis: Optional[RedisClient] = None
_routing: Optional[RoutingProvider] = None
_pricing_service: Optional[PricingService] = None


def build_routing_provider(settings: Settings) -> RoutingProvider:
    """Провайдер маршрутов по настройке google_maps.ROUTING_PROVIDER."""
    if settings.google_maps.ROUTING_PROVIDER == "google":
        return GoogleMapsRoutingProvider(
            api_key=settings.google_maps.GOOGLE_MAPS_API_KEY,
            language=settings.google_maps.GOOGLE_MAPS_LANGUAGE,
            timeout=settings.pricing.ROUTE_TIMEOUT_SECONDS,
        )
    return HaversineRoutingProvider(
        road_distance_factor=settings.pricing.ROAD_DISTANCE_FACTOR,
        average_speed_kmh=settings.pricing.AVERAGE_SPEED_KMH,
        tz=ZoneInfo(settings.pricing.TIMEZONE),
    )


def build_pricing_service(
    settings: Settings,
    config_store: PricingConfigStore,
    zone_store: SurgeZoneStore,
    routing: RoutingProvider,
    redis: RedisClient | None = None,
) -> PricingService:
    """Собирает сервис из зависимостей и настроек расчета стоимости."""
    tz = ZoneInfo(settings.pricing.TIMEZONE)
    policy = build_surge_policy(
        settings.pricing.SURGE_POLICIES,
        zone_store=zone_store,
        redis=redis,
        tz=tz,
    )
    return PricingService(
        config_store=config_store,
        zone_store=zone_store,
        routing=routing,
        surge=SurgeEstimator(
            policy,
            max_multiplier=settings.pricing.SURGE_MULTIPLIER_MAX,
            timeout=settings.pricing.SURGE_TIMEOUT_SECONDS,
        ),
        calculator=FareCalculator(settings.pricing.CURRENCY),
        tz=tz,
        route_timeout=settings.pricing.ROUTE_TIMEOUT_SECONDS,
        config_timeout=settings.pricing.CONFIG_TIMEOUT_SECONDS,
    )


async def init_dependencies(settings: Settings | None = None) -> None:
    """Инициализирует все зависимости сервиса."""
    global _db, _redis, _routing, _pricing_service

    settings = settings or get_settings()

    config_store: PricingConfigStore
    zone_store: SurgeZoneStore

    if settings.pricing.CONFIG_STORE == "postgres":
        _db = await init_db()
        config_store = PostgresPricingConfigStore(_db)
        zone_store = PostgresSurgeZoneStore(_db)
        await log_info("Используется хранилище тарифов PostgreSQL", type_msg=TypeMsg.DEBUG)
    else:
        config_store = InMemoryPricingConfigStore()
        zone_store = InMemorySurgeZoneStore()
        await log_info("Используется хранилище тарифов в памяти", type_msg=TypeMsg.DEBUG)

    if settings.pricing.SEED_DEFAULTS_ON_STARTUP:
        configs = await config_store.seed_defaults()
        zones = await zone_store.seed_defaults()
        await log_info(f"Создано тарифов: {configs}, зон повышенного спроса: {zones}", type_msg=TypeMsg.INFO)

    if "redis" in settings.pricing.SURGE_POLICIES:
        _redis = await init_redis()

    _routing = build_routing_provider(settings)

    _pricing_service = build_pricing_service(
        settings,
        config_store=config_store,
        zone_store=zone_store,
        routing=_routing,
        redis=_redis,
    )

    await log_info("Pricing Service инициализирован", type_msg=TypeMsg.INFO)


async def close_dependencies() -> None:
    """Освобождает все ресурсы."""
    global _db, _redis, _routing, _pricing_service

    if _routing is not None:
        await _routing.close()
        _routing = None

    if _redis is not None:
        await close_redis()
        _redis = None
        await log_info("Redis отключен", type_msg=TypeMsg.DEBUG)

    if _db is not None:
        await close_db()
        _db = None
        await log_info("PostgreSQL отключен", type_msg=TypeMsg.DEBUG)

    _pricing_service = None


async def get_db() -> DatabaseManager | None:
    """Менеджер БД, None при хранилище в памяти."""
    return _db


async def get_redis() -> RedisClient | None:
    """Redis клиент, None если политика redis не настроена."""
    return _redis


async def get_pricing_service() -> PricingService:
    if _pricing_service is None:
        raise RuntimeError("PricingService не инициализирован. Вызовите init_dependencies()")
    return _pricing_service
