# fare_engine/__init__.py
"""
Движок расчета стоимости поездок для платформы такси.
Тарифы по типам автомобилей, политики повышения и калькулятор стоимости.
"""

__version__ = "1.0.0"
