# fare_engine/config/__init__.py
"""
Модуль конфигурации.
Экспортирует настройки приложения.
"""

from fare_engine.config.loader import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
