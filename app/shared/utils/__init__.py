# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/__init__.py

Exportación de utilidades comunes (fechas UTC e importes monetarios).

Autor: Naturinex Billing
Fecha: 2026-09-02
"""

from .datetime_helpers import utcnow, ensure_utc, from_unix, to_unix, to_iso8601
from .money import to_money, cents_to_money, ZERO

__all__ = [
    "utcnow",
    "ensure_utc",
    "from_unix",
    "to_unix",
    "to_iso8601",
    "to_money",
    "cents_to_money",
    "ZERO",
]

# Fin del archivo backend/app/shared/utils/__init__.py
