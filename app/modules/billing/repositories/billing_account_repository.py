# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/repositories/billing_account_repository.py

Repositorio para la tabla billing_accounts.

Responsabilidades:
- Resolver propietario por customer del gateway
- Resolver cuenta por suscripción

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from ..models import BillingAccount


class BillingAccountRepository(BaseRepository[BillingAccount]):
    def __init__(self) -> None:
        super().__init__(BillingAccount)

    async def get_by_owner(self, session: AsyncSession, owner_id: str) -> Optional[BillingAccount]:
        stmt = select(BillingAccount).where(BillingAccount.owner_id == owner_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_customer(self, session: AsyncSession, customer_id: str) -> Optional[BillingAccount]:
        stmt = select(BillingAccount).where(BillingAccount.gateway_customer_id == customer_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_subscription(self, session: AsyncSession, subscription_id: str) -> Optional[BillingAccount]:
        stmt = select(BillingAccount).where(BillingAccount.subscription_id == subscription_id)
        result = await session.execute(stmt)
        return result.scalars().first()

# Fin del archivo backend/app/modules/billing/repositories/billing_account_repository.py
