# fare_engine/config/loader.py
"""
Модуль загрузки конфигурации проекта.
config/config.json является единственным источником истины,
секреты и хосты переопределяются переменными окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    override = os.getenv("FARE_ENGINE_CONFIG")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "fare_engine"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Настройки развертывания сервиса тарификации."""
    PRICING_SERVICE_HOST: str = "0.0.0.0"
    PRICING_SERVICE_PORT: int = 8086


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class GoogleMapsSettings(BaseModel):
    """Настройки провайдера маршрутов."""
    ROUTING_PROVIDER: str = "haversine"
    GOOGLE_MAPS_API_KEY: str = ""
    GOOGLE_MAPS_LANGUAGE: str = "en"

    @field_validator("GOOGLE_MAPS_API_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает API ключ из переменных окружения."""
        if not v:
            return os.getenv("GOOGLE_MAPS_API_KEY", "")
        return v

    @field_validator("ROUTING_PROVIDER")
    @classmethod
    def check_provider(cls, v: str) -> str:
        v = v.lower()
        if v not in ("haversine", "google"):
            raise ValueError(f"Неизвестный провайдер маршрутов: {v}")
        return v


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "fare_engine"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 30

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis (сигналы повышающего коэффициента)."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "pricing"
    REDIS_MAX_CONNECTIONS: int = 20

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class PricingSettings(BaseModel):
    """Настройки тарификации."""
    CURRENCY: str = "TZS"
    TIMEZONE: str = "Africa/Dar_es_Salaam"
    CONFIG_STORE: str = "memory"
    ROUTE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    CONFIG_TIMEOUT_SECONDS: float = Field(default=2.0, gt=0)
    SURGE_TIMEOUT_SECONDS: float = Field(default=1.0, gt=0)
    ROAD_DISTANCE_FACTOR: float = Field(default=1.3, ge=1.0)
    AVERAGE_SPEED_KMH: float = Field(default=30.0, gt=0)
    SURGE_MULTIPLIER_MAX: float = Field(default=5.0, ge=1.0)
    SURGE_POLICIES: list[str] = Field(default_factory=lambda: ["zones", "time_of_day"])
    SEED_DEFAULTS_ON_STARTUP: bool = True

    @field_validator("CONFIG_STORE")
    @classmethod
    def check_store(cls, v: str) -> str:
        v = v.lower()
        if v not in ("memory", "postgres"):
            raise ValueError(f"Неизвестное хранилище тарифов: {v}")
        return v

    @field_validator("SURGE_POLICIES")
    @classmethod
    def check_policies(cls, v: list[str]) -> list[str]:
        allowed = {"none", "zones", "time_of_day", "redis"}
        policies = [p.lower() for p in v]
        unknown = [p for p in policies if p not in allowed]
        if unknown:
            raise ValueError(f"Неизвестные политики повышения: {unknown}")
        return policies


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Объединяет все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    google_maps: GoogleMapsSettings = Field(default_factory=GoogleMapsSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_config_json(cls, config_data: dict[str, Any] | None = None) -> "Settings":
        """
        Создает настройки из плоского словаря config.json.
        Секреты и хосты переопределяются из окружения.
        """
        if config_data is None:
            config_data = load_config_json()

        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "fare_engine"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", True),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                PRICING_SERVICE_HOST=os.getenv("PRICING_SERVICE_HOST", data.get("PRICING_SERVICE_HOST", "0.0.0.0")),
                PRICING_SERVICE_PORT=int(os.getenv("PRICING_SERVICE_PORT", data.get("PRICING_SERVICE_PORT", 8086))),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            google_maps=GoogleMapsSettings(
                ROUTING_PROVIDER=os.getenv("ROUTING_PROVIDER", data.get("ROUTING_PROVIDER", "haversine")),
                GOOGLE_MAPS_API_KEY=os.getenv("GOOGLE_MAPS_API_KEY", data.get("GOOGLE_MAPS_API_KEY", "")),
                GOOGLE_MAPS_LANGUAGE=data.get("GOOGLE_MAPS_LANGUAGE", "en"),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "fare_engine")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 30),
            ),
            redis=RedisSettings(
                REDIS_HOST=os.getenv("REDIS_HOST", data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", data.get("REDIS_PORT", 6379))),
                REDIS_DB=data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", data.get("REDIS_PASSWORD", "")),
                REDIS_NAMESPACE=data.get("REDIS_NAMESPACE", "pricing"),
                REDIS_MAX_CONNECTIONS=data.get("REDIS_MAX_CONNECTIONS", 20),
            ),
            pricing=PricingSettings(
                CURRENCY=data.get("CURRENCY", "TZS"),
                TIMEZONE=data.get("TIMEZONE", "Africa/Dar_es_Salaam"),
                CONFIG_STORE=os.getenv("CONFIG_STORE", data.get("CONFIG_STORE", "memory")),
                ROUTE_TIMEOUT_SECONDS=data.get("ROUTE_TIMEOUT_SECONDS", 5.0),
                CONFIG_TIMEOUT_SECONDS=data.get("CONFIG_TIMEOUT_SECONDS", 2.0),
                SURGE_TIMEOUT_SECONDS=data.get("SURGE_TIMEOUT_SECONDS", 1.0),
                ROAD_DISTANCE_FACTOR=data.get("ROAD_DISTANCE_FACTOR", 1.3),
                AVERAGE_SPEED_KMH=data.get("AVERAGE_SPEED_KMH", 30.0),
                SURGE_MULTIPLIER_MAX=data.get("SURGE_MULTIPLIER_MAX", 5.0),
                SURGE_POLICIES=data.get("SURGE_POLICIES", ["zones", "time_of_day"]),
                SEED_DEFAULTS_ON_STARTUP=data.get("SEED_DEFAULTS_ON_STARTUP", True),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек.
    Предварительно загружает .env из корня проекта.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
