# fare_engine/services/__init__.py
"""
Сервисы приложения.

Каждый сервис - отдельное FastAPI приложение:
- pricing: расчет стоимости и чтение тарифов и зон повышенного спроса
"""

__all__: list[str] = []
