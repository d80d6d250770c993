# tests/services/test_pricing_dependencies.py
"""
Тесты для сборки зависимостей Pricing Service.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fare_engine.config.loader import Settings
from fare_engine.core.geo.service import GoogleMapsRoutingProvider, HaversineRoutingProvider
from fare_engine.core.pricing.repository import (
    InMemoryPricingConfigStore,
    InMemorySurgeZoneStore,
    PostgresPricingConfigStore,
)
from fare_engine.core.surge.service import CompositeSurgePolicy, SurgeZonePolicy
from fare_engine.services.pricing import dependencies


@pytest.fixture
def settings(mock_config: dict[str, Any], monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.delenv("CONFIG_STORE", raising=False)
    monkeypatch.delenv("ROUTING_PROVIDER", raising=False)
    return Settings.from_config_json({**mock_config, "SURGE_POLICIES": ["zones"]})


@pytest.fixture(autouse=True)
def reset_dependencies(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("_db", "_redis", "_routing", "_pricing_service"):
        monkeypatch.setattr(dependencies, name, None)


class TestBuildRoutingProvider:
    """Тесты для build_routing_provider."""

    def test_haversine(self, settings: Settings) -> None:
        provider = dependencies.build_routing_provider(settings)

        assert isinstance(provider, HaversineRoutingProvider)
        assert provider._tz.key == "Africa/Nairobi"

    @pytest.mark.asyncio
    async def test_google(self, settings: Settings) -> None:
        settings.google_maps.ROUTING_PROVIDER = "google"
        settings.google_maps.GOOGLE_MAPS_API_KEY = "key"

        provider = dependencies.build_routing_provider(settings)

        assert isinstance(provider, GoogleMapsRoutingProvider)
        assert provider._timeout == 3.0
        assert provider._language == "sw"
        await provider.close()


class TestBuildPricingService:
    """Тесты для build_pricing_service."""

    def test_settings_applied(self, settings: Settings) -> None:
        service = dependencies.build_pricing_service(
            settings,
            config_store=InMemoryPricingConfigStore(),
            zone_store=InMemorySurgeZoneStore(),
            routing=HaversineRoutingProvider(),
        )

        assert service._calculator._currency == "KES"
        assert service._route_timeout == 3.0
        assert service._config_timeout == 1.0
        assert service._surge._max_multiplier == 3.0
        assert service._surge._timeout == 0.5
        assert isinstance(service._surge._policy, SurgeZonePolicy)

    def test_redis_policy_requires_client(self, settings: Settings) -> None:
        settings.pricing.SURGE_POLICIES = ["zones", "redis"]

        with pytest.raises(ValueError):
            dependencies.build_pricing_service(
                settings,
                config_store=InMemoryPricingConfigStore(),
                zone_store=InMemorySurgeZoneStore(),
                routing=HaversineRoutingProvider(),
            )

    def test_composite_policy(self, settings: Settings, mock_redis: AsyncMock) -> None:
        settings.pricing.SURGE_POLICIES = ["zones", "redis"]

        service = dependencies.build_pricing_service(
            settings,
            config_store=InMemoryPricingConfigStore(),
            zone_store=InMemorySurgeZoneStore(),
            routing=HaversineRoutingProvider(),
            redis=mock_redis,
        )

        assert isinstance(service._surge._policy, CompositeSurgePolicy)


class TestLifecycle:
    """Тесты для init_dependencies и close_dependencies."""

    @pytest.mark.asyncio
    async def test_in_memory_startup(self, settings: Settings) -> None:
        settings.pricing.SEED_DEFAULTS_ON_STARTUP = True

        await dependencies.init_dependencies(settings)

        service = await dependencies.get_pricing_service()
        configs = await service.list_configs()
        assert len(configs) == 4
        assert await dependencies.get_db() is None
        assert await dependencies.get_redis() is None

    @pytest.mark.asyncio
    async def test_startup_without_seeding(self, settings: Settings) -> None:
        await dependencies.init_dependencies(settings)

        service = await dependencies.get_pricing_service()
        assert await service.list_configs() == []

    @pytest.mark.asyncio
    async def test_postgres_startup(self, settings: Settings, mock_db: AsyncMock) -> None:
        settings.pricing.CONFIG_STORE = "postgres"

        with patch.object(dependencies, "init_db", AsyncMock(return_value=mock_db)):
            await dependencies.init_dependencies(settings)

        service = await dependencies.get_pricing_service()
        assert isinstance(service._config_store, PostgresPricingConfigStore)
        assert await dependencies.get_db() is mock_db

        with patch.object(dependencies, "close_db", AsyncMock()) as close_db:
            await dependencies.close_dependencies()

        close_db.assert_awaited_once()
        assert await dependencies.get_db() is None

    @pytest.mark.asyncio
    async def test_redis_connected_for_redis_policy(self, settings: Settings, mock_redis: AsyncMock) -> None:
        settings.pricing.SURGE_POLICIES = ["redis"]

        with patch.object(dependencies, "init_redis", AsyncMock(return_value=mock_redis)):
            await dependencies.init_dependencies(settings)

        assert await dependencies.get_redis() is mock_redis

        with patch.object(dependencies, "close_redis", AsyncMock()) as close_redis:
            await dependencies.close_dependencies()

        close_redis.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_service_unavailable_after_close(self, settings: Settings) -> None:
        await dependencies.init_dependencies(settings)
        await dependencies.close_dependencies()

        with pytest.raises(RuntimeError):
            await dependencies.get_pricing_service()


class TestRoutingClosed:
    """Провайдер маршрутов освобождается при остановке."""

    @pytest.mark.asyncio
    async def test_routing_closed(self, settings: Settings) -> None:
        routing = MagicMock()
        routing.close = AsyncMock()

        with patch.object(dependencies, "build_routing_provider", return_value=routing):
            await dependencies.init_dependencies(settings)
            await dependencies.close_dependencies()

        routing.close.assert_awaited_once()
