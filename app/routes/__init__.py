# -*- coding: utf-8 -*-
"""
backend/app/routes/__init__.py

Ensamblador principal de ruteadores del motor de facturación
(`from app.routes import router`).

Responsabilidades:
- Incluir el router de health (/health).
- Reutilizar las capas `api` y `public` definidas en master_routes.py.

Autor: Naturinex Billing
Fecha: 2026-09-20
"""

from fastapi import APIRouter

from .health_routes import router as health_router
from .master_routes import router as master_router

router = APIRouter()

# Health check sin prefijo adicional
router.include_router(health_router)
router.include_router(master_router)

__all__ = ["router"]

# Fin del archivo backend/app/routes/__init__.py
