# -*- coding: utf-8 -*-
"""
backend/app/shared/config/__init__.py

Entry-point ligero para configuración:
    from app.shared.config import get_settings, get_billing_settings, get_payout_settings

No inicializa settings en import-time para evitar efectos colaterales
durante la recolección de tests.

Autor: Naturinex Billing
Fecha: 02/09/2026
"""

from app.shared.config.config_loader import get_settings
from app.shared.config.settings_billing import BillingSettings, get_billing_settings
from app.shared.config.settings_payouts import PayoutSettings, get_payout_settings

__all__ = [
    "get_settings",
    "BillingSettings",
    "get_billing_settings",
    "PayoutSettings",
    "get_payout_settings",
]
# Fin del archivo backend/app/shared/config/__init__.py
