# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/routes/payout_routes.py

Rutas internas de operación de payouts (Bearer APP_SERVICE_TOKEN).

Endpoints:
- POST /affiliates/payouts/run           → corrida completa ahora
- POST /affiliates/{id}/payouts          → payout manual (bypass opcional)
- GET  /affiliates/payouts/{id}          → estado del payout
- POST /affiliates/payouts/{id}/retry    → reintento de un payout failed
- POST /affiliates/payouts/{id}/reconcile → completa un payout needs_reconciliation
- GET  /affiliates/{id}/fraud-check      → screening sin efectos

Autor: Naturinex Billing
Fecha: 2026-09-19
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.shared.internal_auth import InternalServiceAuth
from ..errors import (
    AffiliateNotFound,
    EligibilityError,
    PayoutLinkConflict,
    PayoutNotFound,
    PayoutNotRetryable,
    PayoutStateConflict,
)
from ..facades.payouts import PayoutOrchestrator
from ..schemas import BatchSummaryOut, FraudCheckOut, ManualPayoutRequest, PayoutOut, PayoutOutcomeOut
from .dependencies import get_payout_orchestrator

router = APIRouter(
    prefix="/affiliates",
    tags=["affiliates:payouts"],
)


@router.post("/payouts/run", response_model=BatchSummaryOut)
async def run_payouts(
    _auth: InternalServiceAuth,
    session: AsyncSession = Depends(get_async_session),
    orchestrator: PayoutOrchestrator = Depends(get_payout_orchestrator),
) -> BatchSummaryOut:
    summary = await orchestrator.run_scheduled_payouts(session)
    return BatchSummaryOut(**summary.as_dict())


@router.post("/payouts/{payout_id}/retry", response_model=PayoutOutcomeOut)
async def retry_payout(
    payout_id: int,
    _auth: InternalServiceAuth,
    session: AsyncSession = Depends(get_async_session),
    orchestrator: PayoutOrchestrator = Depends(get_payout_orchestrator),
) -> PayoutOutcomeOut:
    try:
        outcome = await orchestrator.retry_failed_payout(session, payout_id)
    except PayoutNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PayoutNotRetryable as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return PayoutOutcomeOut(**outcome.as_dict())


@router.get("/payouts/{payout_id}", response_model=PayoutOut)
async def get_payout(
    payout_id: int,
    _auth: InternalServiceAuth,
    session: AsyncSession = Depends(get_async_session),
    orchestrator: PayoutOrchestrator = Depends(get_payout_orchestrator),
) -> PayoutOut:
    try:
        payout = await orchestrator.get_payout(session, payout_id)
    except PayoutNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return PayoutOut.model_validate(payout)


@router.post("/payouts/{payout_id}/reconcile", response_model=PayoutOutcomeOut)
async def reconcile_payout(
    payout_id: int,
    _auth: InternalServiceAuth,
    session: AsyncSession = Depends(get_async_session),
    orchestrator: PayoutOrchestrator = Depends(get_payout_orchestrator),
) -> PayoutOutcomeOut:
    try:
        outcome = await orchestrator.reconcile_payout(session, payout_id)
    except PayoutNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PayoutStateConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return PayoutOutcomeOut(**outcome.as_dict())


@router.post("/{affiliate_id}/payouts", response_model=PayoutOutcomeOut)
async def manual_payout(
    affiliate_id: int,
    _auth: InternalServiceAuth,
    payload: Optional[ManualPayoutRequest] = Body(default=None),
    session: AsyncSession = Depends(get_async_session),
    orchestrator: PayoutOrchestrator = Depends(get_payout_orchestrator),
) -> PayoutOutcomeOut:
    bypass = payload.bypass_eligibility if payload else False
    try:
        outcome = await orchestrator.process_manual_payout(session, affiliate_id, bypass_eligibility=bypass)
    except AffiliateNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EligibilityError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": str(e), "reasons": e.reasons},
        )
    except PayoutLinkConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return PayoutOutcomeOut(**outcome.as_dict())


@router.get("/{affiliate_id}/fraud-check", response_model=FraudCheckOut)
async def fraud_check(
    affiliate_id: int,
    _auth: InternalServiceAuth,
    session: AsyncSession = Depends(get_async_session),
    orchestrator: PayoutOrchestrator = Depends(get_payout_orchestrator),
) -> FraudCheckOut:
    try:
        result = await orchestrator.check_fraud(session, affiliate_id)
    except AffiliateNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return FraudCheckOut(**result.as_dict())


# Fin del archivo backend/app/modules/affiliates/routes/payout_routes.py
