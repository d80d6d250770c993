# fare_engine/shared/__init__.py
"""
Модели, общие для доменного слоя и HTTP слоя.
"""

__all__: list[str] = []
