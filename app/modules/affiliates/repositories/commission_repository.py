# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/repositories/commission_repository.py

Repositorio de comisiones.

La vinculación a un payout es un UPDATE condicional (payout_id IS NULL):
si otra corrida ganó alguna fila, rowcount no coincide y el llamador
hace rollback.

Autor: Naturinex Billing
Fecha: 2026-09-15
"""

from datetime import datetime
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from ..enums import CommissionStatus
from ..models import CommissionRecord


class CommissionRepository(BaseRepository[CommissionRecord]):
    def __init__(self) -> None:
        super().__init__(CommissionRecord)

    async def list_unlinked_confirmed(
        self,
        session: AsyncSession,
        affiliate_id: int,
        *,
        for_update: bool = False,
    ) -> Sequence[CommissionRecord]:
        stmt = (
            select(CommissionRecord)
            .where(CommissionRecord.affiliate_id == affiliate_id)
            .where(CommissionRecord.status == CommissionStatus.CONFIRMED.value)
            .where(CommissionRecord.payout_id.is_(None))
            .order_by(CommissionRecord.transaction_date.asc(), CommissionRecord.id.asc())
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_confirmed_since(
        self,
        session: AsyncSession,
        affiliate_id: int,
        since: datetime,
    ) -> Sequence[CommissionRecord]:
        """Comisiones confirmed (vinculadas o no) de la ventana de velocidad."""
        stmt = (
            select(CommissionRecord)
            .where(CommissionRecord.affiliate_id == affiliate_id)
            .where(CommissionRecord.status == CommissionStatus.CONFIRMED.value)
            .where(CommissionRecord.transaction_date >= since)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_for_payout(self, session: AsyncSession, payout_id: int) -> Sequence[CommissionRecord]:
        stmt = select(CommissionRecord).where(CommissionRecord.payout_id == payout_id)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def link_to_payout(self, session: AsyncSession, commission_ids: Sequence[int], payout_id: int) -> int:
        """Vincula solo las que siguen libres; retorna cuántas se vincularon."""
        if not commission_ids:
            return 0
        stmt = (
            update(CommissionRecord)
            .where(CommissionRecord.id.in_(list(commission_ids)))
            .where(CommissionRecord.payout_id.is_(None))
            .where(CommissionRecord.status == CommissionStatus.CONFIRMED.value)
            .values(payout_id=payout_id)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    async def mark_paid(self, session: AsyncSession, payout_id: int, now: datetime) -> int:
        """confirmed → paid para las comisiones del payout (una sola vez)."""
        stmt = (
            update(CommissionRecord)
            .where(CommissionRecord.payout_id == payout_id)
            .where(CommissionRecord.status == CommissionStatus.CONFIRMED.value)
            .values(status=CommissionStatus.PAID.value, paid_at=now)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

# Fin del archivo backend/app/modules/affiliates/repositories/commission_repository.py
