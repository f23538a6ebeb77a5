# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/repositories/billing_history_repository.py

Repositorios de historial de cobros, métodos de pago y eventos de
suscripción.

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from ..models import BillingHistory, PaymentMethod, SubscriptionEvent


class BillingHistoryRepository(BaseRepository[BillingHistory]):
    def __init__(self) -> None:
        super().__init__(BillingHistory)

    async def get_by_invoice(self, session: AsyncSession, invoice_id: str) -> Optional[BillingHistory]:
        stmt = select(BillingHistory).where(BillingHistory.invoice_id == invoice_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_by_owner(self, session: AsyncSession, owner_id: str) -> Sequence[BillingHistory]:
        stmt = (
            select(BillingHistory)
            .where(BillingHistory.owner_id == owner_id)
            .order_by(BillingHistory.created_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()


class PaymentMethodRepository(BaseRepository[PaymentMethod]):
    def __init__(self) -> None:
        super().__init__(PaymentMethod)

    async def get_by_gateway_id(self, session: AsyncSession, gateway_payment_method_id: str) -> Optional[PaymentMethod]:
        stmt = select(PaymentMethod).where(PaymentMethod.gateway_payment_method_id == gateway_payment_method_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_by_owner(self, session: AsyncSession, owner_id: str) -> Sequence[PaymentMethod]:
        stmt = select(PaymentMethod).where(PaymentMethod.owner_id == owner_id).order_by(PaymentMethod.id.asc())
        result = await session.execute(stmt)
        return result.scalars().all()

    async def flag_for_replacement(self, session: AsyncSession, owner_id: str) -> int:
        """Marca los métodos del propietario para reemplazo; retorna cuántos."""
        stmt = (
            update(PaymentMethod)
            .where(PaymentMethod.owner_id == owner_id)
            .where(PaymentMethod.needs_replacement.is_(False))
            .values(needs_replacement=True)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0


class SubscriptionEventRepository(BaseRepository[SubscriptionEvent]):
    def __init__(self) -> None:
        super().__init__(SubscriptionEvent)

    async def list_by_owner(self, session: AsyncSession, owner_id: str) -> Sequence[SubscriptionEvent]:
        stmt = (
            select(SubscriptionEvent)
            .where(SubscriptionEvent.owner_id == owner_id)
            .order_by(SubscriptionEvent.id.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

# Fin del archivo backend/app/modules/billing/repositories/billing_history_repository.py
