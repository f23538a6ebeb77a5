# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/services/idempotency_service.py

Ledger de idempotencia de webhooks.

Cada par (event_id, dedup_key) tiene una sola fila. El claim inserta la
fila en 'received' y hace commit ANTES de que corra cualquier handler;
la restricción única convierte la inserción en la garantía at-most-once.
Una segunda entrega concurrente choca con la restricción y observa
duplicate. Registros 'failed' o 'received' huérfanos (lease vencido) se
reclaman con UPDATE condicional sobre lease_version: solo un worker gana.

Autor: Naturinex Billing
Fecha: 2026-09-09
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.utils.datetime_helpers import ensure_utc, utcnow
from ..enums import IdempotencyStatus
from ..errors import ClaimNotHeld
from ..models import IdempotencyRecord, WebhookEvent
from ..repositories import IdempotencyRecordRepository, WebhookAuditRepository, WebhookEventRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Claim:
    """
    Resultado de intentar reclamar un par (event_id, dedup_key).

    claimed=False significa que otra entrega ya lo procesó o lo tiene en
    curso; el llamador debe responder duplicate.
    """

    claimed: bool
    event_id: str
    dedup_key: str
    event_type: str
    record_id: Optional[int] = None
    lease_version: int = 0
    previous_status: Optional[str] = None
    result: Optional[dict[str, Any]] = None


class IdempotencyService:
    """Transiciones del ledger; el commit del claim lo hace el propio servicio."""

    def __init__(
        self,
        record_repo: IdempotencyRecordRepository,
        audit_repo: WebhookAuditRepository,
        event_repo: WebhookEventRepository,
        *,
        lease_seconds: int = 120,
    ) -> None:
        self.record_repo = record_repo
        self.audit_repo = audit_repo
        self.event_repo = event_repo
        self.lease_seconds = lease_seconds

    # ---------------------------------------------------------
    # Claim
    # ---------------------------------------------------------
    async def claim(
        self,
        session: AsyncSession,
        *,
        event_id: str,
        dedup_key: str,
        event_type: str,
        now: Optional[datetime] = None,
    ) -> Claim:
        now = now or utcnow()
        try:
            record = await self.record_repo.create(
                session,
                event_id=event_id,
                dedup_key=dedup_key,
                event_type=event_type,
                status=IdempotencyStatus.RECEIVED.value,
                lease_version=1,
                claimed_at=now,
                created_at=now,
            )
            await session.commit()
            return Claim(
                claimed=True,
                event_id=event_id,
                dedup_key=dedup_key,
                event_type=event_type,
                record_id=record.id,
                lease_version=1,
            )
        except IntegrityError:
            await session.rollback()

        existing = await self.record_repo.get_by_key(session, event_id, dedup_key)
        if existing is None:
            # La fila que provocó el conflicto desapareció; se trata como en curso
            logger.warning(f"Ledger: conflicto sin fila visible event={event_id} key={dedup_key}")
            return self._not_claimed(event_id, dedup_key, event_type, IdempotencyStatus.RECEIVED.value)

        if not self._is_reclaimable(existing, now):
            return self._not_claimed(event_id, dedup_key, event_type, existing.status, existing.result)

        previous_status = existing.status
        won = await self.record_repo.reclaim(
            session,
            existing.id,
            expected_status=existing.status,
            expected_version=existing.lease_version,
            now=now,
        )
        await session.commit()
        if not won:
            return self._not_claimed(event_id, dedup_key, event_type, previous_status)

        logger.info(
            f"Ledger: registro reclamado event={event_id} key={dedup_key} "
            f"desde={previous_status} version={existing.lease_version + 1}"
        )
        return Claim(
            claimed=True,
            event_id=event_id,
            dedup_key=dedup_key,
            event_type=event_type,
            record_id=existing.id,
            lease_version=existing.lease_version + 1,
            previous_status=previous_status,
        )

    def _is_reclaimable(self, record: IdempotencyRecord, now: datetime) -> bool:
        if record.status == IdempotencyStatus.FAILED.value:
            return True
        if record.status == IdempotencyStatus.RECEIVED.value:
            lease_expires = ensure_utc(record.claimed_at) + timedelta(seconds=self.lease_seconds)
            return lease_expires <= ensure_utc(now)
        return False

    @staticmethod
    def _not_claimed(
        event_id: str,
        dedup_key: str,
        event_type: str,
        status: str,
        result: Optional[dict[str, Any]] = None,
    ) -> Claim:
        return Claim(
            claimed=False,
            event_id=event_id,
            dedup_key=dedup_key,
            event_type=event_type,
            previous_status=status,
            result=result,
        )

    # ---------------------------------------------------------
    # Transiciones (el commit lo decide el facade)
    # ---------------------------------------------------------
    @staticmethod
    def _held_record_id(claim: Claim) -> int:
        if not claim.claimed or claim.record_id is None:
            raise ClaimNotHeld(claim.event_id, claim.dedup_key)
        return claim.record_id

    async def mark_processed(
        self,
        session: AsyncSession,
        claim: Claim,
        *,
        attempts: int,
        result: dict[str, Any],
    ) -> bool:
        """
        received → processed. Retorna False si el lease ya no es nuestro
        (otro worker reclamó el registro); el llamador debe hacer rollback.
        """
        ok = await self.record_repo.mark_processed(
            session,
            self._held_record_id(claim),
            lease_version=claim.lease_version,
            attempts=attempts,
            result_payload=result,
            now=utcnow(),
        )
        if ok:
            await self.audit(session, claim, IdempotencyStatus.RECEIVED.value, IdempotencyStatus.PROCESSED.value)
        return ok

    async def mark_failed(
        self,
        session: AsyncSession,
        claim: Claim,
        *,
        attempts: int,
        error: str,
    ) -> bool:
        ok = await self.record_repo.mark_failed(
            session,
            self._held_record_id(claim),
            lease_version=claim.lease_version,
            attempts=attempts,
            error=error[:2000],
        )
        if ok:
            await self.audit(
                session, claim, IdempotencyStatus.RECEIVED.value, IdempotencyStatus.FAILED.value, detail=error[:2000]
            )
        return ok

    async def audit(
        self,
        session: AsyncSession,
        claim: Claim,
        from_status: str,
        to_status: str,
        *,
        detail: Optional[str] = None,
    ) -> None:
        await self.audit_repo.create(
            session,
            event_id=claim.event_id,
            dedup_key=claim.dedup_key,
            event_type=claim.event_type,
            from_status=from_status,
            to_status=to_status,
            detail=detail,
        )

    # ---------------------------------------------------------
    # Archivo del evento
    # ---------------------------------------------------------
    async def ensure_event(
        self,
        session: AsyncSession,
        *,
        event_id: str,
        event_type: str,
        occurred_at: Optional[datetime],
        raw_payload: dict[str, Any],
        signature_header: Optional[str],
    ) -> WebhookEvent:
        """Crea la fila de archivo del evento si no existe (commit incluido)."""
        existing = await self.event_repo.get_by_event_id(session, event_id)
        if existing is not None:
            return existing
        try:
            event = await self.event_repo.create(
                session,
                event_id=event_id,
                event_type=event_type,
                occurred_at=occurred_at,
                raw_payload=raw_payload,
                signature_header=signature_header,
            )
            await session.commit()
            return event
        except IntegrityError:
            await session.rollback()
            existing = await self.event_repo.get_by_event_id(session, event_id)
            if existing is None:
                raise
            return existing


__all__ = ["Claim", "IdempotencyService"]

# Fin del archivo backend/app/modules/billing/services/idempotency_service.py
