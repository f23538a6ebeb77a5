# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/repositories/webhook_repository.py

Repositorios del ledger de webhooks.

Todas las transiciones de IdempotencyRecord son UPDATE condicionales
(status + lease_version) y retornan si afectaron exactamente una fila:
así dos entregas concurrentes nunca ejecutan ambas los efectos.

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.shared.utils.datetime_helpers import utcnow
from ..enums import IdempotencyStatus, WebhookEventStatus
from ..models import IdempotencyRecord, WebhookAuditLog, WebhookEvent


class IdempotencyRecordRepository(BaseRepository[IdempotencyRecord]):
    def __init__(self) -> None:
        super().__init__(IdempotencyRecord)

    async def get_by_key(self, session: AsyncSession, event_id: str, dedup_key: str) -> Optional[IdempotencyRecord]:
        stmt = (
            select(IdempotencyRecord)
            .where(IdempotencyRecord.event_id == event_id)
            .where(IdempotencyRecord.dedup_key == dedup_key)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def reclaim(
        self,
        session: AsyncSession,
        record_id: int,
        *,
        expected_status: str,
        expected_version: int,
        now: datetime,
    ) -> bool:
        """Reclama un registro failed/huérfano; gana quien actualiza la versión."""
        stmt = (
            update(IdempotencyRecord)
            .where(IdempotencyRecord.id == record_id)
            .where(IdempotencyRecord.status == expected_status)
            .where(IdempotencyRecord.lease_version == expected_version)
            .values(
                status=IdempotencyStatus.RECEIVED.value,
                lease_version=expected_version + 1,
                claimed_at=now,
                error=None,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def mark_processed(
        self,
        session: AsyncSession,
        record_id: int,
        *,
        lease_version: int,
        attempts: int,
        result_payload: dict[str, Any],
        now: datetime,
    ) -> bool:
        stmt = (
            update(IdempotencyRecord)
            .where(IdempotencyRecord.id == record_id)
            .where(IdempotencyRecord.status == IdempotencyStatus.RECEIVED.value)
            .where(IdempotencyRecord.lease_version == lease_version)
            .values(
                status=IdempotencyStatus.PROCESSED.value,
                result=result_payload,
                attempts=attempts,
                processed_at=now,
                error=None,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def mark_failed(
        self,
        session: AsyncSession,
        record_id: int,
        *,
        lease_version: int,
        attempts: int,
        error: str,
    ) -> bool:
        stmt = (
            update(IdempotencyRecord)
            .where(IdempotencyRecord.id == record_id)
            .where(IdempotencyRecord.status == IdempotencyStatus.RECEIVED.value)
            .where(IdempotencyRecord.lease_version == lease_version)
            .values(
                status=IdempotencyStatus.FAILED.value,
                attempts=attempts,
                error=error,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def list_failed_for_event(self, session: AsyncSession, event_id: str) -> Sequence[IdempotencyRecord]:
        stmt = (
            select(IdempotencyRecord)
            .where(IdempotencyRecord.event_id == event_id)
            .where(IdempotencyRecord.status == IdempotencyStatus.FAILED.value)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


class WebhookEventRepository(BaseRepository[WebhookEvent]):
    def __init__(self) -> None:
        super().__init__(WebhookEvent)

    async def get_by_event_id(self, session: AsyncSession, event_id: str) -> Optional[WebhookEvent]:
        stmt = (
            select(WebhookEvent)
            .where(WebhookEvent.event_id == event_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_by_status(
        self,
        session: AsyncSession,
        status: WebhookEventStatus,
        limit: int = 100,
    ) -> Sequence[WebhookEvent]:
        stmt = (
            select(WebhookEvent)
            .where(WebhookEvent.status == status.value)
            .order_by(WebhookEvent.updated_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def set_status(
        self,
        session: AsyncSession,
        event_id: str,
        status: WebhookEventStatus,
        *,
        attempts: int,
        last_error: Optional[str] = None,
    ) -> bool:
        """UPDATE directo: no depende de instancias cargadas antes de un rollback."""
        stmt = (
            update(WebhookEvent)
            .where(WebhookEvent.event_id == event_id)
            .values(status=status.value, attempts=attempts, last_error=last_error, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1


class WebhookAuditRepository(BaseRepository[WebhookAuditLog]):
    def __init__(self) -> None:
        super().__init__(WebhookAuditLog)

    async def list_for_event(self, session: AsyncSession, event_id: str) -> Sequence[WebhookAuditLog]:
        stmt = (
            select(WebhookAuditLog)
            .where(WebhookAuditLog.event_id == event_id)
            .order_by(WebhookAuditLog.id.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

# Fin del archivo backend/app/modules/billing/repositories/webhook_repository.py
