# -*- coding: utf-8 -*-
"""
backend/app/routes/health_routes.py

Endpoint básico de health check del motor de facturación.

Autor: Naturinex Billing
Fecha: 2026-09-20
"""

from fastapi import APIRouter, Request

from app.core.settings import get_settings
from app.core.db import check_database_health
from app.shared.utils import to_iso8601, utcnow

router = APIRouter()


@router.get(
    "/health",
    summary="Health check del servicio",
    description=(
        "Devuelve el estado básico del servicio: conectividad a la base de "
        "datos y estado de la cola de notificaciones."
    ),
)
async def health_check(request: Request) -> dict:
    settings = get_settings()

    db_ok = await check_database_health(timeout_s=2.0)
    queue = getattr(request.app.state, "notifications", None)

    return {
        "status": "ok" if db_ok else "degraded",
        "timestamp": to_iso8601(utcnow()),
        "environment": settings.python_env,
        "database": {
            "reachable": db_ok,
        },
        "notifications": {
            "running": bool(queue and queue.running),
            "sent": getattr(queue, "sent", 0),
            "failed": getattr(queue, "failed", 0),
            "dropped": getattr(queue, "dropped", 0),
        },
        "service": {
            "name": "naturinex-billing-engine",
            "version": settings.app_version,
        },
    }

# Fin del archivo backend/app/routes/health_routes.py
