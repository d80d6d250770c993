# fare_engine/shared/models/pricing.py
"""
Модели расчета стоимости.
Атрибуты в snake_case; JSON формат ответа в camelCase.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Принимает snake_case и camelCase, сериализует в camelCase по алиасам."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_vehicle_type(value: str) -> str:
    """Тип автомобиля сравнивается без учета регистра."""
    return value.strip().lower()


class PricingConfig(CamelModel):
    """Тариф для одного типа автомобиля."""

    id: int | None = None
    vehicle_type: str = Field(..., min_length=1, max_length=32)
    base_fare: float = Field(..., ge=0)
    per_km_rate: float = Field(..., ge=0)
    per_minute_rate: float = Field(..., ge=0)
    minimum_fare: float = Field(..., ge=0)
    booking_fee: float = Field(default=0.0, ge=0)
    cancellation_fee: float = Field(default=0.0, ge=0)
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("vehicle_type")
    @classmethod
    def _normalize_vehicle_type(cls, v: str) -> str:
        return normalize_vehicle_type(v)


class FareEstimateRequest(CamelModel):
    """Запрос расчета из приложения пассажира."""

    pickup_lat: float = Field(..., ge=-90, le=90)
    pickup_lng: float = Field(..., ge=-180, le=180)
    dropoff_lat: float = Field(..., ge=-90, le=90)
    dropoff_lng: float = Field(..., ge=-180, le=180)
    vehicle_type: str = Field(..., min_length=1, max_length=32)
    time_of_day: datetime | None = None

    @field_validator("vehicle_type")
    @classmethod
    def _normalize_vehicle_type(cls, v: str) -> str:
        return normalize_vehicle_type(v)


class FareBreakdown(CamelModel):
    """Детализация стоимости; каждая сумма округлена до точности валюты."""

    base_fare: float
    distance_fare: float
    time_fare: float
    surge_fare: float
    booking_fee: float
    total: float = Field(..., ge=0)


class FareEstimate(CamelModel):
    """Рассчитанная стоимость. Не сохраняется."""

    estimated_fare: float = Field(..., ge=0)
    distance: float = Field(..., ge=0, description="Расстояние маршрута, км")
    duration: float = Field(..., ge=0, description="Длительность маршрута, минуты")
    surge_multiplier: float = Field(..., ge=1.0)
    breakdown: FareBreakdown
    vehicle_type: str
    currency: str


class SurgeInfo(BaseModel):
    """Результат политики повышения."""

    multiplier: float = Field(default=1.0, ge=1.0)
    is_surging: bool = False
    zone_name: str | None = None
    reason: str | None = None

    @classmethod
    def no_surge(cls) -> "SurgeInfo":
        return cls()


class SurgeZone(CamelModel):
    """Круглая зона повышенного спроса с необязательным окном активности."""

    id: int | None = None
    name: str = Field(..., min_length=1, max_length=128)
    center_latitude: float = Field(..., ge=-90, le=90)
    center_longitude: float = Field(..., ge=-180, le=180)
    radius_km: float = Field(..., ge=0.1)
    surge_multiplier: float = Field(..., ge=1.0, le=5.0)
    is_active: bool = True
    start_time: datetime | None = None
    end_time: datetime | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def _check_window(self) -> "SurgeZone":
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must not be earlier than start_time")
        return self

    def is_open_at(self, moment: datetime) -> bool:
        """
        True, если окно зоны содержит moment.
        Зона без полного окна открыта всегда.
        Наивное время считается UTC.
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        if self.start_time is None or self.end_time is None:
            return True
        return self.start_time <= moment <= self.end_time
