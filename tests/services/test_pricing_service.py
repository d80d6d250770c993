# tests/services/test_pricing_service.py
"""
Тесты для оркестрации PricingService.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from fare_engine.core.geo.service import RouteInfo
from fare_engine.core.pricing.calculator import FareCalculator
from fare_engine.core.pricing.errors import (
    ConfigNotFoundError,
    InvalidTripGeometryError,
    RoutingError,
    UpstreamTimeoutError,
)
from fare_engine.core.pricing.repository import InMemoryPricingConfigStore, InMemorySurgeZoneStore
from fare_engine.core.surge.service import NoSurgePolicy, SurgeEstimator, SurgeZonePolicy, TimeOfDayPolicy
from fare_engine.services.pricing.service import PricingService
from fare_engine.shared.models.pricing import FareEstimateRequest

DAR = ZoneInfo("Africa/Dar_es_Salaam")


class SlowRouting:
    """Провайдер маршрутов, который не отвечает вовремя."""

    async def route(self, *args, **kwargs) -> RouteInfo:
        await asyncio.sleep(5)
        return RouteInfo(distance_km=1, duration_minutes=1)

    async def close(self) -> None:
        return None


class SlowConfigStore(InMemoryPricingConfigStore):
    """Хранилище тарифов, которое не отвечает вовремя."""

    async def get_active_config(self, vehicle_type: str):
        await asyncio.sleep(5)
        return await super().get_active_config(vehicle_type)


class StalledZoneStore(InMemorySurgeZoneStore):
    """Хранилище зон, которое не отвечает."""

    async def list_active_zones(self):
        await asyncio.sleep(3600)
        return []


@pytest.fixture
def routing() -> AsyncMock:
    routing = AsyncMock()
    routing.route.return_value = RouteInfo(distance_km=10, duration_minutes=20)
    return routing


def make_service(
    config_store,
    routing,
    policy=None,
    zone_store=None,
    route_timeout: float = 1.0,
    config_timeout: float = 1.0,
    surge_timeout: float = 1.0,
) -> PricingService:
    return PricingService(
        config_store=config_store,
        zone_store=zone_store or InMemorySurgeZoneStore(),
        routing=routing,
        surge=SurgeEstimator(policy or NoSurgePolicy(), timeout=surge_timeout),
        calculator=FareCalculator("TZS"),
        tz=DAR,
        route_timeout=route_timeout,
        config_timeout=config_timeout,
    )


class TestEstimateFare:
    """Тесты для PricingService.estimate_fare."""

    @pytest.mark.asyncio
    async def test_estimate(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        service = make_service(config_store, routing)

        estimate = await service.estimate_fare(sample_request)

        assert estimate.breakdown.total == 20.50
        assert estimate.distance == 10
        assert estimate.duration == 20
        assert estimate.currency == "TZS"
        routing.route.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_surge_from_local_time(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        """05:00 UTC on Wednesday is the 08:00 rush hour in Dar es Salaam."""
        service = make_service(config_store, routing, policy=TimeOfDayPolicy(DAR))
        request = sample_request.model_copy(update={
            "time_of_day": datetime(2024, 6, 12, 5, 0, tzinfo=timezone.utc),
        })

        estimate = await service.estimate_fare(request)

        assert estimate.surge_multiplier == 1.2
        assert estimate.breakdown.total == 24.40

    @pytest.mark.asyncio
    async def test_naive_time_is_local(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        service = make_service(config_store, routing)
        request = sample_request.model_copy(update={"time_of_day": datetime(2024, 6, 12, 8, 0)})

        await service.estimate_fare(request)

        departure = routing.route.call_args.kwargs["departure_time"]
        assert departure.tzinfo is DAR
        assert departure.hour == 8

    @pytest.mark.asyncio
    async def test_default_time_is_now(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        service = make_service(config_store, routing)
        request = sample_request.model_copy(update={"time_of_day": None})

        await service.estimate_fare(request)

        departure = routing.route.call_args.kwargs["departure_time"]
        assert departure.tzinfo is not None
        assert abs((datetime.now(timezone.utc) - departure).total_seconds()) < 60

    @pytest.mark.asyncio
    async def test_unknown_vehicle_type(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        service = make_service(config_store, routing)
        request = sample_request.model_copy(update={"vehicle_type": "boda"})

        with pytest.raises(ConfigNotFoundError):
            await service.estimate_fare(request)

    @pytest.mark.asyncio
    async def test_surge_failure_does_not_block_quote(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        policy = AsyncMock()
        policy.evaluate.side_effect = RuntimeError("demand feed down")
        service = make_service(config_store, routing, policy=policy)

        estimate = await service.estimate_fare(sample_request)

        assert estimate.surge_multiplier == 1.0
        assert estimate.breakdown.total == 20.50

    @pytest.mark.asyncio
    async def test_unusable_route(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        routing.route.return_value = RouteInfo(distance_km=-1, duration_minutes=5)
        service = make_service(config_store, routing)

        with pytest.raises(InvalidTripGeometryError):
            await service.estimate_fare(sample_request)

    @pytest.mark.asyncio
    async def test_routing_error_propagates(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        routing.route.side_effect = RoutingError("No route found")
        service = make_service(config_store, routing)

        with pytest.raises(RoutingError):
            await service.estimate_fare(sample_request)


class TestDeadlines:
    """Внешние вызовы ограничены таймаутами."""

    @pytest.mark.asyncio
    async def test_routing_timeout(
        self,
        config_store: InMemoryPricingConfigStore,
        sample_request: FareEstimateRequest,
    ) -> None:
        service = make_service(config_store, SlowRouting(), route_timeout=0.01)

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await service.estimate_fare(sample_request)

        assert exc_info.value.upstream == "routing"
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_config_timeout(
        self,
        sample_config,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        service = make_service(SlowConfigStore([sample_config]), routing, config_timeout=0.01)

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await service.estimate_fare(sample_request)

        assert exc_info.value.upstream == "pricing config store"

    @pytest.mark.asyncio
    async def test_stalled_surge_does_not_block_quote(
        self,
        config_store: InMemoryPricingConfigStore,
        routing: AsyncMock,
        sample_request: FareEstimateRequest,
    ) -> None:
        service = make_service(
            config_store,
            routing,
            policy=SurgeZonePolicy(StalledZoneStore()),
            surge_timeout=0.05,
        )

        estimate = await asyncio.wait_for(service.estimate_fare(sample_request), timeout=5)

        assert estimate.surge_multiplier == 1.0
        assert estimate.breakdown.total == 20.50

    @pytest.mark.asyncio
    async def test_get_config_timeout(self, sample_config, routing: AsyncMock) -> None:
        service = make_service(SlowConfigStore([sample_config]), routing, config_timeout=0.01)

        with pytest.raises(UpstreamTimeoutError):
            await service.get_config("economy")


class TestListings:
    """Чтение списков."""

    @pytest.mark.asyncio
    async def test_list_configs(self, routing: AsyncMock) -> None:
        store = InMemoryPricingConfigStore()
        await store.seed_defaults()
        service = make_service(store, routing)

        configs = await service.list_configs()

        assert [c.vehicle_type for c in configs] == ["comfort", "economy", "premium", "xl"]

    @pytest.mark.asyncio
    async def test_get_config(self, config_store: InMemoryPricingConfigStore, routing: AsyncMock) -> None:
        service = make_service(config_store, routing)

        config = await service.get_config("ECONOMY")

        assert config.minimum_fare == 5.00

    @pytest.mark.asyncio
    async def test_list_surge_zones(
        self,
        config_store: InMemoryPricingConfigStore,
        zone_store: InMemorySurgeZoneStore,
        routing: AsyncMock,
    ) -> None:
        service = make_service(config_store, routing, zone_store=zone_store)

        zones = await service.list_surge_zones()

        assert [z.name for z in zones] == ["City Center (Posta)"]
