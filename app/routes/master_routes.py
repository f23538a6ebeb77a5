# -*- coding: utf-8 -*-
"""
backend/app/routes/master_routes.py

Router maestro con dos capas:
  - rutas públicas sin prefijo (las que consume el gateway y operación)
  - /api/... (espejo estable para clientes internos)

Monta:
- Billing: /billing/webhooks (ingesta) y /billing/webhooks/parked|replay
- Affiliates: /affiliates/payouts/*, /affiliates/{id}/payouts,
  /affiliates/{id}/fraud-check

Autor: Naturinex Billing
Fecha: 2026-09-20
"""
from __future__ import annotations

import logging

from fastapi import APIRouter

from app.modules.affiliates.routes import get_affiliate_routers
from app.modules.billing.routes import get_billing_routers

logger = logging.getLogger(__name__)

# Capas principales
api = APIRouter(prefix="/api")
public = APIRouter(prefix="")  # sin prefijo

_loaded: list[str] = []  # trazabilidad/debug


def _include(target: APIRouter, router: APIRouter, name: str) -> None:
    """Incluye un router en la capa dada y registra trazabilidad en logs."""
    target.include_router(router)
    _loaded.append(f"{target.prefix or '/'}:{name}")
    logger.debug(
        "✅ Router '%s' montado en prefix '%s' (router.prefix='%s')",
        name,
        target.prefix or "/",
        getattr(router, "prefix", ""),
    )


# ─────────────────────────────────────────
# BILLING (webhooks + eventos estacionados)
# ─────────────────────────────────────────
_include(public, get_billing_routers(), "billing.main")
_include(api, get_billing_routers(), "billing.main")


# ─────────────────────────────────────────
# AFFILIATES (payouts + screening de fraude)
# ─────────────────────────────────────────
_include(public, get_affiliate_routers(), "affiliates.payouts")
_include(api, get_affiliate_routers(), "affiliates.payouts")


@api.get("/_debug/loaded-routers", include_in_schema=False)
def loaded_routers():
    """Routers montados y la capa en la que quedaron."""
    return {"loaded": _loaded}


router = APIRouter()
router.include_router(api)
router.include_router(public)

__all__ = ["router", "api", "public"]

# Fin del archivo backend/app/routes/master_routes.py
