# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/models/payout_models.py

Payouts, alertas de fraude y notificaciones persistidas del afiliado.

Autor: Naturinex Billing
Fecha: 2026-09-15
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import MONEY, Base, JSONType
from app.shared.utils.datetime_helpers import utcnow
from ..enums import PayoutStatus


class Payout(Base):
    """
    Pago a un afiliado.

    Invariante: net_amount = max(0, gross_amount − processing_fee − tax_withheld).
    """

    __tablename__ = "payouts"
    __table_args__ = (Index("ix_payouts_affiliate_status", "affiliate_id", "status"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    affiliate_id: Mapped[int] = mapped_column(ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False)

    gross_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    processing_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    tax_withheld: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    net_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")

    commission_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    period_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    period_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(24), nullable=False, default=PayoutStatus.PROCESSING.value)

    payment_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    payment_provider: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    provider_status: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        doc="Estado informado por el proveedor (pending/processing/completed).",
    )
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    failed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:  # pragma: no cover - representacional
        return f"<Payout id={self.id} affiliate={self.affiliate_id} status={self.status} net={self.net_amount}>"


class FraudAlert(Base):
    """Registro auditable de un screening que bloqueó un payout."""

    __tablename__ = "fraud_alerts"

    id: Mapped[int] = mapped_column(primary_key=True)
    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fraud_type: Mapped[str] = mapped_column(String(32), nullable=False, default="payout_fraud")
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence_score: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("0.80"))
    risk_level: Mapped[str] = mapped_column(String(16), nullable=False, default="high")
    detection_method: Mapped[str] = mapped_column(String(32), nullable=False, default="automated")
    evidence: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    action_taken: Mapped[str] = mapped_column(String(32), nullable=False, default="block_payout")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class AffiliateNotification(Base):
    __tablename__ = "affiliate_notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    notification_type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="normal")
    data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

# Fin del archivo backend/app/modules/affiliates/models/payout_models.py
