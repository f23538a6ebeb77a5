# -*- coding: utf-8 -*-
"""
backend/app/shared/database/__init__.py

Re-exporta utilidades comunes de base de datos.

Autor: Naturinex Billing
Fecha: 2026-09-02
"""

from __future__ import annotations

from .database import (
    engine,
    SessionLocal,
    get_async_session,
    get_db,
    session_scope,
    create_all_tables,
    check_database_health,
)
from .base import Base, NAMING_CONVENTION, JSONType, MONEY
from .repository import BaseRepository

__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "NAMING_CONVENTION",
    "JSONType",
    "MONEY",
    "BaseRepository",
    "get_async_session",
    "get_db",
    "session_scope",
    "create_all_tables",
    "check_database_health",
]

# Fin del archivo backend/app/shared/database/__init__.py
