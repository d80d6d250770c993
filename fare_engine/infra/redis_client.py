# fare_engine/infra/redis_client.py
"""
Клиент Redis.
Читает сигналы повышающего коэффициента, публикуемые конвейером спроса и предложения.
"""

from __future__ import annotations

import json

import redis.asyncio as redis

from fare_engine.common.logger import log_error, log_info
from fare_engine.common.constants import TypeMsg


class RedisClient:
    """
    Асинхронный клиент Redis с префиксом ключей.
    Singleton: один пул соединений на процесс.
    """

    _instance: RedisClient | None = None
    _client: redis.Redis | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client = None
        self._namespace = "pricing"

    @property
    def client(self) -> redis.Redis:
        """Возвращает клиент redis.asyncio."""
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    def _make_key(self, key: str) -> str:
        """Формирует ключ с namespace."""
        return f"{self._namespace}:{key}"

    async def connect(
        self,
        url: str | None = None,
        max_connections: int = 20,
        namespace: str | None = None,
    ) -> None:
        """
        Подключается к Redis.

        Args:
            url: URL Redis (из конфига, если None)
            max_connections: Размер пула
            namespace: Префикс ключей
        """
        if self._client is not None:
            return

        if url is None:
            from fare_engine.config import settings
            url = settings.redis.url
            max_connections = settings.redis.REDIS_MAX_CONNECTIONS
            namespace = settings.redis.REDIS_NAMESPACE

        if namespace:
            self._namespace = namespace

        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO)

        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        await self._client.ping()

        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    # =========================================================================
    # ЧТЕНИЕ
    # =========================================================================

    async def get(self, key: str) -> str | None:
        """Получает значение по ключу."""
        return await self.client.get(self._make_key(key))

    # =========================================================================
    # JSON ОПЕРАЦИИ
    # =========================================================================

    async def get_json(self, key: str) -> dict | list | None:
        """Получает JSON значение, None если ключа нет или JSON невалиден."""
        data = await self.get(key)
        if data is None:
            return None

        try:
            return json.loads(data)
        except json.JSONDecodeError:
            await log_error(f"Невалидный JSON по ключу Redis {key}")
            return None

    async def health_check(self) -> bool:
        """Проверяет доступность Redis командой PING."""
        try:
            return bool(await self.client.ping())
        except Exception as e:
            await log_error(f"Ошибка проверки здоровья Redis: {e}")
            return False


def get_redis() -> RedisClient:
    """Возвращает экземпляр RedisClient."""
    return RedisClient()


async def init_redis() -> RedisClient:
    """Подключается по URL из конфига."""
    from fare_engine.config import settings

    redis_client = get_redis()
    await redis_client.connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
        namespace=settings.redis.REDIS_NAMESPACE,
    )
    return redis_client


async def close_redis() -> None:
    """Закрывает соединение с Redis."""
    await get_redis().disconnect()
