# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/repositories/affiliate_repository.py

Repositorios de afiliados y clicks de referidos.

Autor: Naturinex Billing
Fecha: 2026-09-15
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.shared.security.payment_details_codec import PaymentDetailsCodec
from ..enums import CommissionStatus
from ..models import Affiliate, CommissionRecord, ReferralClick


class AffiliateRepository(BaseRepository[Affiliate]):
    def __init__(self) -> None:
        super().__init__(Affiliate)

    async def list_ids_with_pending_commissions(self, session: AsyncSession) -> list[int]:
        """Afiliados con comisiones confirmed aún sin vincular a un payout."""
        stmt = (
            select(CommissionRecord.affiliate_id)
            .where(CommissionRecord.status == CommissionStatus.CONFIRMED.value)
            .where(CommissionRecord.payout_id.is_(None))
            .group_by(CommissionRecord.affiliate_id)
            .order_by(CommissionRecord.affiliate_id.asc())
        )
        result = await session.execute(stmt)
        return [int(row) for row in result.scalars().all()]

    async def count_sharing_fingerprint(
        self,
        session: AsyncSession,
        fingerprint: str,
        exclude_affiliate_id: int,
    ) -> int:
        stmt = (
            select(func.count(Affiliate.id))
            .where(Affiliate.payment_details_fingerprint == fingerprint)
            .where(Affiliate.id != exclude_affiliate_id)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def list_unfingerprinted_with_details(
        self,
        session: AsyncSession,
        exclude_affiliate_id: int,
    ) -> Sequence[Affiliate]:
        """Afiliados con datos cifrados pero sin huella persistida (altas antiguas)."""
        stmt = (
            select(Affiliate)
            .where(Affiliate.encrypted_payment_details.is_not(None))
            .where(Affiliate.payment_details_fingerprint.is_(None))
            .where(Affiliate.id != exclude_affiliate_id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def add_to_total_paid(self, session: AsyncSession, affiliate_id: int, amount: Decimal) -> None:
        stmt = (
            update(Affiliate)
            .where(Affiliate.id == affiliate_id)
            .values(total_paid=Affiliate.total_paid + amount)
        )
        await session.execute(stmt)

    def set_payment_details(
        self,
        affiliate: Affiliate,
        *,
        method: str,
        details: Mapping[str, Any],
        codec: PaymentDetailsCodec,
    ) -> None:
        """Cifra y guarda los datos de pago junto con su huella."""
        affiliate.payment_method = method
        affiliate.encrypted_payment_details = codec.encrypt(details)
        affiliate.payment_details_fingerprint = codec.fingerprint(details)


class ReferralClickRepository(BaseRepository[ReferralClick]):
    def __init__(self) -> None:
        super().__init__(ReferralClick)

    async def list_since(self, session: AsyncSession, affiliate_id: int, since: datetime) -> Sequence[ReferralClick]:
        stmt = (
            select(ReferralClick)
            .where(ReferralClick.affiliate_id == affiliate_id)
            .where(ReferralClick.clicked_at >= since)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

# Fin del archivo backend/app/modules/affiliates/repositories/affiliate_repository.py
