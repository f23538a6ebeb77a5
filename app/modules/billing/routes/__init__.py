# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/routes/__init__.py

Router agregado del módulo Billing (prefijo /billing).
"""

from fastapi import APIRouter

from .admin_routes import router as admin_router
from .dependencies import get_event_dispatcher
from .webhook_routes import router as webhook_router


def get_billing_routers() -> APIRouter:
    router = APIRouter(prefix="/billing")
    router.include_router(webhook_router)
    router.include_router(admin_router)
    return router


__all__ = ["get_billing_routers", "get_event_dispatcher"]
