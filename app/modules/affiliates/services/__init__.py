# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/services/__init__.py

Autor: Naturinex Billing
Fecha: 2026-09-16
"""

from .fraud_screening_service import FraudCheckResult, FraudScreeningService, GeoConsistencyChecker, NoGeoProvider
from .payout_calculations import PayoutAmounts, amounts_from_settings, calculate_payout_amounts, sum_amounts

__all__ = [
    "FraudCheckResult",
    "FraudScreeningService",
    "GeoConsistencyChecker",
    "NoGeoProvider",
    "PayoutAmounts",
    "amounts_from_settings",
    "calculate_payout_amounts",
    "sum_amounts",
]
