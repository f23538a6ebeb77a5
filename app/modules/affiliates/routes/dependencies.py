# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/routes/dependencies.py

El orquestador se construye en el lifespan (app.state.payout_orchestrator).
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from ..facades.payouts import PayoutOrchestrator


def get_payout_orchestrator(request: Request) -> PayoutOrchestrator:
    orchestrator = getattr(request.app.state, "payout_orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payout orchestrator not initialized",
        )
    return orchestrator


__all__ = ["get_payout_orchestrator"]
