# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/money.py

Helpers de importes monetarios con Decimal (2 decimales, ROUND_HALF_UP).

Autor: Naturinex Billing
Fecha: 2026-09-05
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

ZERO = Decimal("0.00")
_CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_money(value: Number | None) -> Decimal:
    """
    Normaliza un número a Decimal con centavos.

    float pasa por str() para no arrastrar error binario.

    Examples:
        >>> to_money(2.5)
        Decimal('2.50')
        >>> to_money("0.005")
        Decimal('0.01')
        >>> to_money(None)
        Decimal('0.00')
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def cents_to_money(cents: int | None) -> Decimal:
    """Convierte centavos enteros (formato del gateway) a Decimal."""
    if cents is None:
        return ZERO
    return to_money(Decimal(int(cents)) / 100)


__all__ = ["ZERO", "to_money", "cents_to_money"]
# Fin del archivo backend/app/shared/utils/money.py
