# -*- coding: utf-8 -*-
"""
backend/app/core/__init__.py

Fachada unificada para componentes centrales del motor de facturación:
- Configuración (settings)
- Logging
- Motor de base de datos y sesiones

Autor: Naturinex Billing
Fecha: 2026-09-02
"""

from .settings import get_settings, get_billing_settings, get_payout_settings
from .logging import setup_logging
from .db import (
    engine,
    SessionLocal,
    Base,
    get_async_session,
    get_db,
    session_scope,
    check_database_health,
)

__all__ = [
    "get_settings",
    "get_billing_settings",
    "get_payout_settings",
    "setup_logging",
    "engine",
    "SessionLocal",
    "Base",
    "get_async_session",
    "get_db",
    "session_scope",
    "check_database_health",
]

# Fin del archivo backend/app/core/__init__.py
