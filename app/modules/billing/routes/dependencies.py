# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/routes/dependencies.py

Dependencias FastAPI del módulo Billing.

El dispatcher se construye una vez en el lifespan (app.state) con la
cola de notificaciones, la caché de entitlements y el cliente del
gateway; los tests lo reemplazan con dependency_overrides.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from ..facades.webhooks import EventDispatcher


def get_event_dispatcher(request: Request) -> EventDispatcher:
    dispatcher = getattr(request.app.state, "billing_dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Billing dispatcher not initialized",
        )
    return dispatcher


__all__ = ["get_event_dispatcher"]
