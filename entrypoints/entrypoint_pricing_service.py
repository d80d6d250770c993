#!/usr/bin/env python3
# entrypoint_pricing_service.py
"""
Точка входа для Pricing Service.
Port: 8086
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from fare_engine.config import settings
from fare_engine.common.logger import log_info, setup_logging
from fare_engine.common.constants import TypeMsg


async def main() -> None:
    """Запускает Pricing Service."""
    setup_logging()
    await log_info(
        f"Запуск Pricing Service на порту {settings.deployment.PRICING_SERVICE_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "fare_engine.services.pricing.app:app",
        host=settings.deployment.PRICING_SERVICE_HOST,
        port=settings.deployment.PRICING_SERVICE_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
