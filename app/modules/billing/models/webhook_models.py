# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/models/webhook_models.py

Ledger de webhooks del gateway:
- WebhookEvent: archivo del evento (payload + header de firma originales)
- IdempotencyRecord: un registro por (event_id, dedup_key); su inserción
  es la garantía at-most-once
- WebhookAuditLog: bitácora append-only de transiciones

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, JSONType
from app.shared.utils.datetime_helpers import utcnow
from ..enums import IdempotencyStatus, WebhookEventStatus


class WebhookEvent(Base):
    __tablename__ = "webhook_events"

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        doc="ID asignado por el gateway (evt_...).",
    )

    event_type: Mapped[str] = mapped_column(String(128), nullable=False)
    occurred_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    raw_payload: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    signature_header: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=WebhookEventStatus.RECEIVED.value,
        index=True,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:  # pragma: no cover - representacional
        return f"<WebhookEvent {self.event_id} type={self.event_type} status={self.status}>"


class IdempotencyRecord(Base):
    __tablename__ = "webhook_idempotency_records"

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[str] = mapped_column(String(255), nullable=False)
    dedup_key: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(128), nullable=False)

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=IdempotencyStatus.RECEIVED.value,
    )

    # Versión del lease: cada claim exitoso la incrementa; las transiciones
    # posteriores se condicionan a la versión que reclamó el worker.
    lease_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    result: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "dedup_key",
            name="uq_webhook_idempotency_records_event_dedup",
        ),
    )

    def __repr__(self) -> str:  # pragma: no cover - representacional
        return f"<IdempotencyRecord {self.event_id}/{self.dedup_key} status={self.status}>"


class WebhookAuditLog(Base):
    __tablename__ = "webhook_audit_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    dedup_key: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(128), nullable=False)
    from_status: Mapped[str] = mapped_column(String(32), nullable=False)
    to_status: Mapped[str] = mapped_column(String(32), nullable=False)
    detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

# Fin del archivo backend/app/modules/billing/models/webhook_models.py
