# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/models/billing_account_models.py

Cuenta de facturación de un propietario (usuario de la app).

Solo los handlers de eventos verificados del gateway mutan esta fila.

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base
from app.shared.utils.datetime_helpers import utcnow
from ..enums import SubscriptionStatus, SubscriptionTier


class BillingAccount(Base):
    __tablename__ = "billing_accounts"

    id: Mapped[int] = mapped_column(primary_key=True)

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        doc="ID del usuario propietario.",
    )

    gateway_customer_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        index=True,
        doc="ID del customer en el gateway (cus_...).",
    )

    subscription_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        index=True,
    )

    price_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    tier: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=SubscriptionTier.FREE.value,
    )

    status: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        doc="SubscriptionStatus; NULL si nunca tuvo suscripción.",
    )

    current_period_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    trial_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_payment_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def tier_enum(self) -> SubscriptionTier:
        return SubscriptionTier(self.tier)

    @property
    def status_enum(self) -> Optional[SubscriptionStatus]:
        return SubscriptionStatus(self.status) if self.status else None

    def __repr__(self) -> str:  # pragma: no cover - representacional
        return f"<BillingAccount owner={self.owner_id} tier={self.tier} status={self.status}>"

# Fin del archivo backend/app/modules/billing/models/billing_account_models.py
