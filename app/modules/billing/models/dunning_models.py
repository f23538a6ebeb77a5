# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/models/dunning_models.py

Intentos de cobro fallidos (dunning) por suscripción.

Se crea una fila por cada invoice.payment_failed; se borran todas las
de la suscripción al llegar invoice.payment_succeeded.

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import MONEY, Base
from app.shared.utils.datetime_helpers import utcnow


class DunningAttempt(Base):
    __tablename__ = "dunning_attempts"

    id: Mapped[int] = mapped_column(primary_key=True)

    billing_account_id: Mapped[int] = mapped_column(
        ForeignKey("billing_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    subscription_id: Mapped[str] = mapped_column(String(255), nullable=False)
    invoice_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False)

    failure_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="usd")

    next_retry_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="NULL cuando el intento agotó el ciclo (exhausted).",
    )

    retry_requested_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Momento en que el job pidió al gateway reintentar el cobro.",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_dunning_attempts_subscription_created", "subscription_id", "created_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover - representacional
        return f"<DunningAttempt sub={self.subscription_id} n={self.attempt_number}>"

# Fin del archivo backend/app/modules/billing/models/dunning_models.py
