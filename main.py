#!/usr/bin/env python3
# main.py
"""
Главная точка входа Fare Engine.

Режимы:
    serve  - запуск HTTP API Pricing Service (по умолчанию)
    seed   - запись тарифов и зон повышенного спроса по умолчанию в PostgreSQL
"""

from __future__ import annotations

import asyncio
import sys

from fare_engine.config import settings
from fare_engine.common.logger import setup_logging, log_info, log_error
from fare_engine.common.constants import TypeMsg
from fare_engine.core.pricing.repository import PostgresPricingConfigStore, PostgresSurgeZoneStore
from fare_engine.infra.database import init_db, close_db

MODES = ("serve", "seed")


async def seed() -> int:
    """
    Заполняет PostgreSQL тарифами и зонами повышенного спроса по умолчанию.
    Существующие типы автомобилей и имена зон не изменяются.

    Returns:
        Код завершения процесса
    """
    if settings.pricing.CONFIG_STORE != "postgres":
        await log_error("Для заполнения нужен CONFIG_STORE=postgres")
        return 1

    db = await init_db()
    try:
        configs = await PostgresPricingConfigStore(db).seed_defaults()
        zones = await PostgresSurgeZoneStore(db).seed_defaults()
    finally:
        await close_db()

    await log_info(f"Заполнение завершено: тарифов {configs}, зон повышенного спроса {zones}", type_msg=TypeMsg.INFO)
    return 0


async def serve() -> int:
    """Запускает Pricing Service через uvicorn."""
    import uvicorn

    await log_info(
        f"Fare Engine v{settings.system.VERSION}: Pricing Service на "
        f"{settings.deployment.PRICING_SERVICE_HOST}:{settings.deployment.PRICING_SERVICE_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "fare_engine.services.pricing.app:app",
        host=settings.deployment.PRICING_SERVICE_HOST,
        port=settings.deployment.PRICING_SERVICE_PORT,
        log_level="debug" if settings.system.DEBUG else "info",
    )
    await uvicorn.Server(config).serve()
    return 0


async def main(mode: str = "serve") -> int:
    setup_logging()

    if mode == "seed":
        return await seed()
    return await serve()


def print_usage() -> None:
    print("""
Использование: python main.py [режим]

Режимы:
    serve   HTTP API Pricing Service (по умолчанию)
    seed    Тарифы и зоны повышенного спроса по умолчанию в PostgreSQL
""")


if __name__ == "__main__":
    mode = "serve"

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in MODES:
            mode = arg
        else:
            print(f"Ошибка: неизвестный режим '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        sys.exit(asyncio.run(main(mode)))
    except KeyboardInterrupt:
        pass
