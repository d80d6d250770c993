# fare_engine/core/pricing/money.py
"""
Округление денежных сумм.
Каждая сумма, которую возвращает движок, проходит через round_money.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CURRENCY_PRECISION = Decimal("0.01")


def round_money(amount: float) -> float:
    """
    Округляет до 2 знаков, половина вверх.

    float преобразуется через кратчайший repr, поэтому 2.675 округляется до 2.68,
    а не до 2.67 по двоичному представлению.
    """
    rounded = Decimal(str(amount)).quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)
    # -0.0 не является осмысленной суммой
    return float(rounded) + 0.0
