# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "test_api_key")
os.environ.setdefault("CONFIG_STORE", "memory")
os.environ.setdefault("ROUTING_PROVIDER", "haversine")

from fare_engine.core.pricing.repository import InMemoryPricingConfigStore, InMemorySurgeZoneStore
from fare_engine.shared.models.pricing import FareEstimateRequest, PricingConfig, SurgeZone


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Плоский словарь конфигурации, как в config.json."""
    return {
        "_comment_system": "System",
        "PROJECT_NAME": "fare_engine_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "PRICING_SERVICE_HOST": "127.0.0.1",
        "PRICING_SERVICE_PORT": 9086,
        "LOG_LEVEL": "DEBUG",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "ROUTING_PROVIDER": "haversine",
        "GOOGLE_MAPS_LANGUAGE": "sw",
        "DB_HOST": "localhost",
        "DB_PORT": 5432,
        "DB_NAME": "fare_engine_test",
        "DB_USER": "postgres",
        "DB_MIN_POOL_SIZE": 1,
        "DB_MAX_POOL_SIZE": 5,
        "REDIS_HOST": "localhost",
        "REDIS_PORT": 6379,
        "REDIS_DB": 1,
        "REDIS_NAMESPACE": "pricing_test",
        "CURRENCY": "KES",
        "TIMEZONE": "Africa/Nairobi",
        "CONFIG_STORE": "memory",
        "ROUTE_TIMEOUT_SECONDS": 3.0,
        "CONFIG_TIMEOUT_SECONDS": 1.0,
        "SURGE_TIMEOUT_SECONDS": 0.5,
        "SURGE_MULTIPLIER_MAX": 3.0,
        "SURGE_POLICIES": ["zones", "redis"],
        "SEED_DEFAULTS_ON_STARTUP": False,
    }


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера БД."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="UPDATE 0")
    db.fetchval = AsyncMock(return_value=None)

    conn = AsyncMock()
    conn.execute = AsyncMock(return_value="UPDATE 0")
    conn.fetchrow = AsyncMock(return_value=None)
    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock(return_value=conn)
    transaction.__aexit__ = AsyncMock(return_value=False)
    db.transaction = MagicMock(return_value=transaction)
    db.conn = conn
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок клиента Redis."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.get_json = AsyncMock(return_value=None)
    redis.health_check = AsyncMock(return_value=True)
    return redis


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def sample_config() -> PricingConfig:
    """Тариф для эталонных примеров расчета."""
    return PricingConfig(
        vehicle_type="economy",
        base_fare=2.50,
        per_km_rate=1.20,
        per_minute_rate=0.25,
        minimum_fare=5.00,
        booking_fee=1.00,
    )


@pytest.fixture
def sample_request() -> FareEstimateRequest:
    """Запрос расчета в пределах Дар-эс-Салама."""
    return FareEstimateRequest(
        pickup_lat=-6.7924,
        pickup_lng=39.2083,
        dropoff_lat=-6.8160,
        dropoff_lng=39.2803,
        vehicle_type="economy",
        time_of_day=datetime(2024, 6, 12, 13, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def sample_zone() -> SurgeZone:
    """Зона повышенного спроса вокруг Posta."""
    return SurgeZone(
        id=1,
        name="City Center (Posta)",
        center_latitude=-6.8160,
        center_longitude=39.2803,
        radius_km=2.5,
        surge_multiplier=1.3,
    )


@pytest.fixture
def config_store(sample_config: PricingConfig) -> InMemoryPricingConfigStore:
    """Хранилище в памяти с тестовым тарифом."""
    return InMemoryPricingConfigStore([sample_config])


@pytest.fixture
def zone_store(sample_zone: SurgeZone) -> InMemorySurgeZoneStore:
    """Хранилище в памяти с тестовой зоной."""
    return InMemorySurgeZoneStore([sample_zone])
