# fare_engine/core/surge/__init__.py
"""
Оценка повышения: подключаемые политики за оценщиком, который при сбое считает без повышения.
"""

from fare_engine.core.surge.service import (
    SurgePolicy,
    NoSurgePolicy,
    SurgeZonePolicy,
    TimeOfDayPolicy,
    RedisSurgeSignalPolicy,
    CompositeSurgePolicy,
    SurgeEstimator,
    build_surge_policy,
)

__all__ = [
    "SurgePolicy",
    "NoSurgePolicy",
    "SurgeZonePolicy",
    "TimeOfDayPolicy",
    "RedisSurgeSignalPolicy",
    "CompositeSurgePolicy",
    "SurgeEstimator",
    "build_surge_policy",
]
