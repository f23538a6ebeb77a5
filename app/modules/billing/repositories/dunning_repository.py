# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/repositories/dunning_repository.py

Repositorio para la tabla dunning_attempts.

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from ..models import DunningAttempt


class DunningAttemptRepository(BaseRepository[DunningAttempt]):
    def __init__(self) -> None:
        super().__init__(DunningAttempt)

    async def count_since(self, session: AsyncSession, subscription_id: str, since: datetime) -> int:
        """Intentos de la suscripción creados dentro de la ventana de gracia."""
        stmt = (
            select(func.count(DunningAttempt.id))
            .where(DunningAttempt.subscription_id == subscription_id)
            .where(DunningAttempt.created_at >= since)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def list_for_subscription(self, session: AsyncSession, subscription_id: str) -> Sequence[DunningAttempt]:
        stmt = (
            select(DunningAttempt)
            .where(DunningAttempt.subscription_id == subscription_id)
            .order_by(DunningAttempt.attempt_number.asc(), DunningAttempt.id.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def latest_for_subscription(self, session: AsyncSession, subscription_id: str) -> Optional[DunningAttempt]:
        stmt = (
            select(DunningAttempt)
            .where(DunningAttempt.subscription_id == subscription_id)
            .order_by(DunningAttempt.created_at.desc(), DunningAttempt.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def delete_for_subscription(self, session: AsyncSession, subscription_id: str) -> int:
        stmt = delete(DunningAttempt).where(DunningAttempt.subscription_id == subscription_id)
        result = await session.execute(stmt)
        return result.rowcount or 0

    async def list_due_for_retry(self, session: AsyncSession, now: datetime, limit: int = 100) -> Sequence[DunningAttempt]:
        """Intentos con next_retry_at vencido y aún no solicitados al gateway."""
        stmt = (
            select(DunningAttempt)
            .where(DunningAttempt.next_retry_at.is_not(None))
            .where(DunningAttempt.next_retry_at <= now)
            .where(DunningAttempt.retry_requested_at.is_(None))
            .order_by(DunningAttempt.next_retry_at.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def mark_retry_requested(self, session: AsyncSession, attempt_id: int, now: datetime) -> bool:
        """Marca condicionalmente; False si otra instancia ya lo tomó."""
        stmt = (
            update(DunningAttempt)
            .where(DunningAttempt.id == attempt_id)
            .where(DunningAttempt.retry_requested_at.is_(None))
            .values(retry_requested_at=now)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def clear_retry_requested(self, session: AsyncSession, attempt_id: int) -> None:
        stmt = update(DunningAttempt).where(DunningAttempt.id == attempt_id).values(retry_requested_at=None)
        await session.execute(stmt)

# Fin del archivo backend/app/modules/billing/repositories/dunning_repository.py
