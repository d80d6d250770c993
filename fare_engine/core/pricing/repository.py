# fare_engine/core/pricing/repository.py
"""
Хранилища тарифов и зон повышенного спроса.
Движок только читает; запись нужна для начального заполнения и должна
сохранять не более одного активного тарифа на тип автомобиля.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Protocol

from asyncpg import Record

from fare_engine.common.constants import TypeMsg
from fare_engine.common.logger import log_info
from fare_engine.core.pricing.defaults import default_pricing_configs, default_surge_zones
from fare_engine.core.pricing.errors import ConfigNotFoundError, MultipleActiveConfigsError
from fare_engine.infra.database import DatabaseManager
from fare_engine.shared.models.pricing import PricingConfig, SurgeZone, normalize_vehicle_type


class PricingConfigStore(Protocol):
    """Источник активных тарифов."""

    async def get_active_config(self, vehicle_type: str) -> PricingConfig: ...

    async def list_active_configs(self) -> list[PricingConfig]: ...

    async def save_config(self, config: PricingConfig) -> PricingConfig: ...

    async def seed_defaults(self) -> int: ...


class SurgeZoneStore(Protocol):
    """Источник зон повышенного спроса."""

    async def list_active_zones(self) -> list[SurgeZone]: ...

    async def add_zone(self, zone: SurgeZone) -> SurgeZone | None: ...

    async def seed_defaults(self) -> int: ...


def _pick_active(vehicle_type: str, active: list[PricingConfig]) -> PricingConfig:
    if not active:
        raise ConfigNotFoundError(vehicle_type)
    if len(active) > 1:
        raise MultipleActiveConfigsError(vehicle_type, len(active))
    return active[0]


# =============================================================================
# В ПАМЯТИ
# =============================================================================

class InMemoryPricingConfigStore:
    """Тарифы в памяти процесса. Для разработки и тестов."""

    def __init__(self, configs: Iterable[PricingConfig] | None = None) -> None:
        self._configs: list[PricingConfig] = []
        self._next_id = 1
        for config in configs or ():
            self._store(config)

    async def get_active_config(self, vehicle_type: str) -> PricingConfig:
        key = normalize_vehicle_type(vehicle_type)
        active = [c for c in self._configs if c.vehicle_type == key and c.is_active]
        return _pick_active(key, active).model_copy()

    async def list_active_configs(self) -> list[PricingConfig]:
        active = [c.model_copy() for c in self._configs if c.is_active]
        return sorted(active, key=lambda c: c.vehicle_type)

    async def save_config(self, config: PricingConfig) -> PricingConfig:
        return self._store(config).model_copy()

    async def seed_defaults(self) -> int:
        known = {c.vehicle_type for c in self._configs}
        created = 0
        for config in default_pricing_configs():
            if config.vehicle_type not in known:
                self._store(config)
                created += 1
                await log_info(f"Создан тариф по умолчанию для {config.vehicle_type}", type_msg=TypeMsg.INFO)
        return created

    def _store(self, config: PricingConfig) -> PricingConfig:
        # Между деактивацией и вставкой нет await, замена атомарна для event loop
        now = datetime.now(timezone.utc)

        if config.is_active:
            self._configs = [
                c.model_copy(update={"is_active": False, "updated_at": now})
                if c.vehicle_type == config.vehicle_type and c.is_active and c.id != config.id
                else c
                for c in self._configs
            ]

        if config.id is None:
            stored = config.model_copy(update={"id": self._next_id, "created_at": now, "updated_at": now})
            self._next_id += 1
            self._configs.append(stored)
            return stored

        stored = config.model_copy(update={"updated_at": now})
        self._configs = [c for c in self._configs if c.id != config.id]
        self._configs.append(stored)
        self._next_id = max(self._next_id, config.id + 1)
        return stored


class InMemorySurgeZoneStore:
    """Зоны повышенного спроса в памяти процесса."""

    def __init__(self, zones: Iterable[SurgeZone] | None = None) -> None:
        self._zones: list[SurgeZone] = []
        for zone in zones or ():
            self._add(zone)

    async def list_active_zones(self) -> list[SurgeZone]:
        return [z.model_copy() for z in self._zones if z.is_active]

    async def add_zone(self, zone: SurgeZone) -> SurgeZone | None:
        return self._add(zone)

    async def seed_defaults(self) -> int:
        created = 0
        for zone in default_surge_zones():
            if self._add(zone) is not None:
                created += 1
        return created

    def _add(self, zone: SurgeZone) -> SurgeZone | None:
        # Имена зон уникальны
        if any(z.name == zone.name for z in self._zones):
            return None
        stored = zone.model_copy(update={"id": len(self._zones) + 1})
        self._zones.append(stored)
        return stored


# =============================================================================
# POSTGRESQL
# =============================================================================

_CONFIG_COLUMNS = """
    id, vehicle_type, base_fare, per_km_rate, per_minute_rate, minimum_fare,
    booking_fee, cancellation_fee, is_active, created_at, updated_at
"""

_ZONE_COLUMNS = """
    id, name, center_latitude, center_longitude, radius_km, surge_multiplier,
    is_active, start_time, end_time
"""


class PostgresPricingConfigStore:
    """Тарифы в таблице pricing_configs."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер БД (dependency injection)
        """
        self._db = db

    async def get_active_config(self, vehicle_type: str) -> PricingConfig:
        key = normalize_vehicle_type(vehicle_type)
        rows = await self._db.fetch(
            f"""
            SELECT {_CONFIG_COLUMNS}
            FROM pricing_configs
            WHERE vehicle_type = $1 AND is_active = true
            """,
            key,
        )
        return _pick_active(key, [self._row_to_config(r) for r in rows])

    async def list_active_configs(self) -> list[PricingConfig]:
        rows = await self._db.fetch(
            f"""
            SELECT {_CONFIG_COLUMNS}
            FROM pricing_configs
            WHERE is_active = true
            ORDER BY vehicle_type
            """
        )
        return [self._row_to_config(r) for r in rows]

    async def save_config(self, config: PricingConfig) -> PricingConfig:
        """
        Создает или обновляет тариф.
        Сохранение активного тарифа деактивирует предыдущий в той же транзакции.
        """
        async with self._db.transaction() as conn:
            if config.is_active:
                await conn.execute(
                    """
                    UPDATE pricing_configs
                    SET is_active = false, updated_at = NOW()
                    WHERE vehicle_type = $1 AND is_active = true
                      AND ($2::bigint IS NULL OR id <> $2::bigint)
                    """,
                    config.vehicle_type,
                    config.id,
                )

            values = (
                config.vehicle_type,
                config.base_fare,
                config.per_km_rate,
                config.per_minute_rate,
                config.minimum_fare,
                config.booking_fee,
                config.cancellation_fee,
                config.is_active,
            )

            if config.id is None:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO pricing_configs (
                        vehicle_type, base_fare, per_km_rate, per_minute_rate, minimum_fare,
                        booking_fee, cancellation_fee, is_active
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    RETURNING {_CONFIG_COLUMNS}
                    """,
                    *values,
                )
            else:
                row = await conn.fetchrow(
                    f"""
                    UPDATE pricing_configs
                    SET vehicle_type = $1, base_fare = $2, per_km_rate = $3, per_minute_rate = $4,
                        minimum_fare = $5, booking_fee = $6, cancellation_fee = $7, is_active = $8,
                        updated_at = NOW()
                    WHERE id = $9
                    RETURNING {_CONFIG_COLUMNS}
                    """,
                    *values,
                    config.id,
                )
                if row is None:
                    raise ConfigNotFoundError(config.vehicle_type)

        return self._row_to_config(row)

    async def seed_defaults(self) -> int:
        created = 0
        for config in default_pricing_configs():
            exists = await self._db.fetchval(
                "SELECT 1 FROM pricing_configs WHERE vehicle_type = $1 LIMIT 1",
                config.vehicle_type,
            )
            if not exists:
                await self.save_config(config)
                created += 1
                await log_info(f"Создан тариф по умолчанию для {config.vehicle_type}", type_msg=TypeMsg.INFO)
        return created

    @staticmethod
    def _row_to_config(row: Record) -> PricingConfig:
        return PricingConfig(
            id=row["id"],
            vehicle_type=row["vehicle_type"],
            base_fare=float(row["base_fare"]),
            per_km_rate=float(row["per_km_rate"]),
            per_minute_rate=float(row["per_minute_rate"]),
            minimum_fare=float(row["minimum_fare"]),
            booking_fee=float(row["booking_fee"]),
            cancellation_fee=float(row["cancellation_fee"]),
            is_active=row["is_active"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class PostgresSurgeZoneStore:
    """Зоны повышенного спроса в таблице surge_zones."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_active_zones(self) -> list[SurgeZone]:
        rows = await self._db.fetch(
            f"""
            SELECT {_ZONE_COLUMNS}
            FROM surge_zones
            WHERE is_active = true
            ORDER BY id
            """
        )
        return [self._row_to_zone(r) for r in rows]

    async def add_zone(self, zone: SurgeZone) -> SurgeZone | None:
        """Создает зону; возвращает None, если зона с таким именем уже есть."""
        row = await self._db.fetchrow(
            f"""
            INSERT INTO surge_zones (
                name, center_latitude, center_longitude, radius_km, surge_multiplier,
                is_active, start_time, end_time
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            ON CONFLICT (name) DO NOTHING
            RETURNING {_ZONE_COLUMNS}
            """,
            zone.name,
            zone.center_latitude,
            zone.center_longitude,
            zone.radius_km,
            zone.surge_multiplier,
            zone.is_active,
            zone.start_time,
            zone.end_time,
        )
        return self._row_to_zone(row) if row else None

    async def seed_defaults(self) -> int:
        created = 0
        for zone in default_surge_zones():
            if await self.add_zone(zone) is not None:
                created += 1
                await log_info(f"Создана зона повышенного спроса: {zone.name}", type_msg=TypeMsg.INFO)
        return created

    @staticmethod
    def _row_to_zone(row: Record) -> SurgeZone:
        return SurgeZone(
            id=row["id"],
            name=row["name"],
            center_latitude=float(row["center_latitude"]),
            center_longitude=float(row["center_longitude"]),
            radius_km=float(row["radius_km"]),
            surge_multiplier=float(row["surge_multiplier"]),
            is_active=row["is_active"],
            start_time=row["start_time"],
            end_time=row["end_time"],
        )
