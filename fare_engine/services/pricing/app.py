# fare_engine/services/pricing/app.py
"""
FastAPI приложение для Pricing Service.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fare_engine.common.constants import TypeMsg
from fare_engine.common.logger import log_error, log_info
from fare_engine.config import settings
from fare_engine.core.pricing.errors import PricingError
from fare_engine.services.pricing.dependencies import (
    close_dependencies,
    get_db,
    get_pricing_service,
    get_redis,
    init_dependencies,
)
from fare_engine.services.pricing.service import PricingService
from fare_engine.shared.models.common import ErrorResponse, HealthStatus
from fare_engine.shared.models.pricing import (
    FareEstimate,
    FareEstimateRequest,
    PricingConfig,
    SurgeZone,
)

SERVICE_NAME = "pricing_service"


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Жизненный цикл приложения."""
    await log_info("Запуск Pricing Service...", type_msg=TypeMsg.INFO)

    await init_dependencies()

    yield

    await close_dependencies()
    await log_info("Pricing Service остановлен", type_msg=TypeMsg.INFO)


# =============================================================================
# ПРИЛОЖЕНИЕ
# =============================================================================

app = FastAPI(
    title="Pricing Service",
    description="Сервис расчета стоимости поездок: тарифы, повышение и детализация.",
    version=settings.system.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PricingError)
async def pricing_error_handler(request: Request, exc: PricingError) -> JSONResponse:
    """Преобразует ошибки расчета в HTTP статус с телом ErrorResponse."""
    message = f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}: {exc.message}"
    if exc.status_code >= 500:
        await log_error(message)
    else:
        await log_info(message, type_msg=TypeMsg.WARNING)

    body = ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details or None)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# =============================================================================
# HEALTH CHECK
# =============================================================================

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Состояние сервиса и каждой подключенной зависимости."""
    deps: dict[str, str] = {}

    db = await get_db()
    if db is not None:
        deps["postgres"] = "healthy" if await db.health_check() else "unhealthy"

    redis = await get_redis()
    if redis is not None:
        deps["redis"] = "healthy" if await redis.health_check() else "unhealthy"

    overall = "healthy" if all(v == "healthy" for v in deps.values()) else "degraded"

    return HealthStatus(
        service=SERVICE_NAME,
        status=overall,
        version=settings.system.VERSION,
        dependencies=deps,
    )


# =============================================================================
# PRICING API
# =============================================================================

@app.post(
    "/pricing/estimate",
    response_model=FareEstimate,
    response_model_by_alias=True,
    tags=["Pricing"],
)
async def estimate_fare(
    request: FareEstimateRequest,
    service: PricingService = Depends(get_pricing_service),
) -> FareEstimate:
    """Расчет стоимости поездки."""
    return await service.estimate_fare(request)


@app.get(
    "/pricing/configs",
    response_model=list[PricingConfig],
    response_model_by_alias=True,
    tags=["Pricing"],
)
async def list_configs(
    service: PricingService = Depends(get_pricing_service),
) -> list[PricingConfig]:
    """Активные тарифы, отсортированные по типу автомобиля."""
    return await service.list_configs()


@app.get(
    "/pricing/configs/{vehicle_type}",
    response_model=PricingConfig,
    response_model_by_alias=True,
    tags=["Pricing"],
)
async def get_config(
    vehicle_type: str,
    service: PricingService = Depends(get_pricing_service),
) -> PricingConfig:
    """Активный тариф для типа автомобиля."""
    return await service.get_config(vehicle_type)


@app.get(
    "/pricing/surge-zones",
    response_model=list[SurgeZone],
    response_model_by_alias=True,
    tags=["Pricing"],
)
async def list_surge_zones(
    service: PricingService = Depends(get_pricing_service),
) -> list[SurgeZone]:
    """Активные зоны повышенного спроса."""
    return await service.list_surge_zones()
