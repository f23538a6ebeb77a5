# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/repositories/payout_repository.py

Repositorios de payouts, alertas de fraude y notificaciones del afiliado.

Las transiciones de estado del payout son UPDATE condicionales sobre el
estado actual; el llamador revisa el booleano retornado.

Autor: Naturinex Billing
Fecha: 2026-09-15
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from ..enums import PayoutStatus
from ..models import AffiliateNotification, FraudAlert, Payout


class PayoutRepository(BaseRepository[Payout]):
    def __init__(self) -> None:
        super().__init__(Payout)

    async def count_recent_failures(self, session: AsyncSession, affiliate_id: int, since: datetime) -> int:
        stmt = (
            select(func.count(Payout.id))
            .where(Payout.affiliate_id == affiliate_id)
            .where(Payout.status == PayoutStatus.FAILED.value)
            .where(Payout.requested_at >= since)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def has_exhausted_retries(self, session: AsyncSession, affiliate_id: int, max_retries: int) -> bool:
        """¿Hay un payout failed que ya agotó sus reintentos (requiere operador)?"""
        stmt = (
            select(func.count(Payout.id))
            .where(Payout.affiliate_id == affiliate_id)
            .where(Payout.status == PayoutStatus.FAILED.value)
            .where(Payout.retry_count >= max_retries)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one()) > 0

    async def list_for_affiliate(self, session: AsyncSession, affiliate_id: int) -> Sequence[Payout]:
        stmt = select(Payout).where(Payout.affiliate_id == affiliate_id).order_by(Payout.id.asc())
        result = await session.execute(stmt)
        return result.scalars().all()

    async def claim_retry(self, session: AsyncSession, payout_id: int, max_retries: int) -> bool:
        """failed → processing con retry_count+1, solo si quedan reintentos."""
        stmt = (
            update(Payout)
            .where(Payout.id == payout_id)
            .where(Payout.status == PayoutStatus.FAILED.value)
            .where(Payout.retry_count < max_retries)
            .values(status=PayoutStatus.PROCESSING.value, retry_count=Payout.retry_count + 1)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def record_receipt(
        self,
        session: AsyncSession,
        payout_id: int,
        *,
        reference: Optional[str],
        provider: Optional[str],
        provider_status: Optional[str],
    ) -> bool:
        """Guarda el comprobante del proveedor sin cambiar el estado (processing)."""
        stmt = (
            update(Payout)
            .where(Payout.id == payout_id)
            .where(Payout.status == PayoutStatus.PROCESSING.value)
            .values(payment_reference=reference, payment_provider=provider, provider_status=provider_status)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def mark_completed(
        self,
        session: AsyncSession,
        payout_id: int,
        *,
        reference: Optional[str],
        provider: Optional[str],
        provider_status: Optional[str],
        now: datetime,
        from_status: PayoutStatus = PayoutStatus.PROCESSING,
    ) -> bool:
        stmt = (
            update(Payout)
            .where(Payout.id == payout_id)
            .where(Payout.status == from_status.value)
            .values(
                status=PayoutStatus.COMPLETED.value,
                payment_reference=reference,
                payment_provider=provider,
                provider_status=provider_status,
                failure_reason=None,
                processed_at=now,
            )
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def mark_failed(self, session: AsyncSession, payout_id: int, *, reason: str, now: datetime) -> bool:
        stmt = (
            update(Payout)
            .where(Payout.id == payout_id)
            .where(Payout.status == PayoutStatus.PROCESSING.value)
            .values(status=PayoutStatus.FAILED.value, failure_reason=reason, failed_at=now)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def mark_needs_reconciliation(
        self,
        session: AsyncSession,
        payout_id: int,
        *,
        reference: Optional[str],
        provider: Optional[str],
        provider_status: Optional[str],
        reason: str,
    ) -> bool:
        """
        processing → needs_reconciliation: el proveedor confirmó la
        transferencia pero la contabilidad local no pudo registrarse.
        """
        stmt = (
            update(Payout)
            .where(Payout.id == payout_id)
            .where(Payout.status == PayoutStatus.PROCESSING.value)
            .values(
                status=PayoutStatus.NEEDS_RECONCILIATION.value,
                payment_reference=reference,
                payment_provider=provider,
                provider_status=provider_status,
                failure_reason=reason,
            )
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1


class FraudAlertRepository(BaseRepository[FraudAlert]):
    def __init__(self) -> None:
        super().__init__(FraudAlert)

    async def list_for_affiliate(self, session: AsyncSession, affiliate_id: int) -> Sequence[FraudAlert]:
        stmt = select(FraudAlert).where(FraudAlert.affiliate_id == affiliate_id).order_by(FraudAlert.id.asc())
        result = await session.execute(stmt)
        return result.scalars().all()


class AffiliateNotificationRepository(BaseRepository[AffiliateNotification]):
    def __init__(self) -> None:
        super().__init__(AffiliateNotification)

    async def add(
        self,
        session: AsyncSession,
        affiliate_id: int,
        *,
        kind: str,
        title: str,
        message: str,
        priority: str,
        data: Optional[dict[str, Any]] = None,
    ) -> AffiliateNotification:
        return await self.create(
            session,
            affiliate_id=affiliate_id,
            notification_type=kind,
            title=title,
            message=message,
            priority=priority,
            data=data,
        )

    async def list_for_affiliate(self, session: AsyncSession, affiliate_id: int) -> Sequence[AffiliateNotification]:
        stmt = (
            select(AffiliateNotification)
            .where(AffiliateNotification.affiliate_id == affiliate_id)
            .order_by(AffiliateNotification.id.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

# Fin del archivo backend/app/modules/affiliates/repositories/payout_repository.py
