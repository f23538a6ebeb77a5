# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/models/affiliate_models.py

Afiliados, clicks de referidos y comisiones.

Los datos de pago se guardan SOLO cifrados (PaymentDetailsCodec); la
huella (SHA-256) se persiste aparte para detectar destinos duplicados
sin descifrar los de otros afiliados.

Autor: Naturinex Billing
Fecha: 2026-09-15
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import MONEY, Base
from app.shared.utils.datetime_helpers import utcnow
from ..enums import AffiliateStatus, CommissionStatus


class Affiliate(Base):
    __tablename__ = "affiliates"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=AffiliateStatus.PENDING.value,
    )

    payment_method: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        doc="PayoutRail elegido por el afiliado.",
    )

    encrypted_payment_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    payment_details_fingerprint: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )

    total_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_conversions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    total_pending: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
        default=Decimal("0.00"),
        doc="Suma de comisiones confirmed sin payout; se recalcula en cada corrida.",
    )
    total_paid: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))

    minimum_payout_threshold: Mapped[Optional[Decimal]] = mapped_column(
        MONEY,
        nullable=True,
        doc="Umbral propio; el efectivo es max(propio, global).",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:  # pragma: no cover - representacional
        return f"<Affiliate id={self.id} status={self.status} method={self.payment_method}>"


class ReferralClick(Base):
    __tablename__ = "referral_clicks"
    __table_args__ = (Index("ix_referral_clicks_affiliate_clicked", "affiliate_id", "clicked_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    affiliate_id: Mapped[int] = mapped_column(ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False)
    visitor_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    clicked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class CommissionRecord(Base):
    """
    Comisión ganada por un afiliado.

    payout_id se fija al crear el Payout (vinculación) y status pasa a
    paid solo cuando la transferencia tuvo éxito.
    """

    __tablename__ = "commission_records"
    __table_args__ = (Index("ix_commission_records_affiliate_status", "affiliate_id", "status"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    affiliate_id: Mapped[int] = mapped_column(ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=CommissionStatus.CONFIRMED.value)
    payout_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("payouts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

# Fin del archivo backend/app/modules/affiliates/models/affiliate_models.py
