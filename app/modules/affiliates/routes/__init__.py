# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/routes/__init__.py

Router agregado del módulo Affiliates.
"""

from fastapi import APIRouter

from .dependencies import get_payout_orchestrator
from .payout_routes import router as payout_router


def get_affiliate_routers() -> APIRouter:
    router = APIRouter()
    router.include_router(payout_router)
    return router


__all__ = ["get_affiliate_routers", "get_payout_orchestrator"]
