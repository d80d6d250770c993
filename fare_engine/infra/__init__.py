# fare_engine/infra/__init__.py
"""
Инфраструктурный слой: PostgreSQL и Redis.
"""

from fare_engine.infra.database import DatabaseManager, get_db
from fare_engine.infra.redis_client import RedisClient, get_redis

__all__ = [
    "DatabaseManager",
    "get_db",
    "RedisClient",
    "get_redis",
]
