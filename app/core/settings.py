# -*- coding: utf-8 -*-
"""
backend/app/core/settings.py

Fachada de configuración del motor de facturación.
Reexpone la carga de settings basada en Pydantic v2 definida en
`app.shared.config`, junto con las secciones de billing y payouts.

Autor: Naturinex Billing
Fecha: 2026-09-02
"""

from typing import cast

from app.shared.config.config_loader import get_settings as _get_settings
from app.shared.config.settings_base import BaseAppSettings
from app.shared.config.settings_billing import BillingSettings, get_billing_settings
from app.shared.config.settings_payouts import PayoutSettings, get_payout_settings


def get_settings() -> BaseAppSettings:
    """
    Devuelve la configuración global de la aplicación.

    Returns:
        BaseAppSettings: instancia de configuración (según PYTHON_ENV).
    """
    settings = _get_settings()
    return cast(BaseAppSettings, settings)


__all__ = [
    "get_settings",
    "BillingSettings",
    "get_billing_settings",
    "PayoutSettings",
    "get_payout_settings",
]

# Fin del archivo backend/app/core/settings.py
