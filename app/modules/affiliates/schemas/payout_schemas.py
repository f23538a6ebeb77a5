# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/schemas/payout_schemas.py

Contratos HTTP de la operación de payouts.

Autor: Naturinex Billing
Fecha: 2026-09-19
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ManualPayoutRequest(BaseModel):
    bypass_eligibility: bool = Field(
        default=False,
        description="Omite la compuerta de elegibilidad (override de operador)",
    )


class PayoutOutcomeOut(BaseModel):
    success: bool
    affiliate_id: int
    payout_id: int
    status: Literal["completed", "failed", "needs_reconciliation"]
    amount: Decimal
    reference: Optional[str] = None
    provider: Optional[str] = None
    error: Optional[str] = None


class BatchSummaryOut(BaseModel):
    processed: int
    failed: int
    skipped: int
    needs_reconciliation: int = 0
    total_amount: Decimal
    errors: list[dict[str, Any]] = Field(default_factory=list)
    payouts: list[dict[str, Any]] = Field(default_factory=list)


class PayoutOut(BaseModel):
    """Estado de un payout para consulta de operador."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    affiliate_id: int
    status: str
    gross_amount: Decimal
    processing_fee: Decimal
    tax_withheld: Decimal
    net_amount: Decimal
    currency: str
    commission_count: int
    payment_method: str
    payment_reference: Optional[str] = None
    payment_provider: Optional[str] = None
    provider_status: Optional[str] = None
    failure_reason: Optional[str] = None
    retry_count: int
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    requested_at: datetime
    processed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None


class FraudCheckOut(BaseModel):
    affiliate_id: int
    risk_score: int
    reasons: list[str] = Field(default_factory=list)
    passed: bool
    checked_at: datetime


__all__ = ["ManualPayoutRequest", "PayoutOutcomeOut", "BatchSummaryOut", "PayoutOut", "FraudCheckOut"]

# Fin del archivo backend/app/modules/affiliates/schemas/payout_schemas.py
