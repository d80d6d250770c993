# fare_engine/common/__init__.py
"""
Общие утилиты, константы и логгер.
"""

from fare_engine.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from fare_engine.common.constants import TypeMsg, VehicleType

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "VehicleType",
]
