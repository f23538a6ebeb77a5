# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/services/entitlement_cache.py

Caché explícita de entitlements premium por propietario.

Política:
- Read-through: get_entitlements() consulta la caché y, si falla,
  resuelve desde BillingAccount y guarda con el TTL configurado.
- Invalidación: subscription.deleted, cambios de tier y dunning agotado
  llaman invalidate(owner_id) antes de encolar notificaciones.
- Construida en el lifespan e inyectada; nunca es un global implícito.

Autor: Naturinex Billing
Fecha: 2026-09-10
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.cache import CacheBackend, TTLCache
from app.shared.config.settings_billing import BillingSettings
from ..enums import SubscriptionStatus, SubscriptionTier
from ..repositories import BillingAccountRepository

logger = logging.getLogger(__name__)

# past_due conserva el acceso mientras corre el ciclo de dunning
_PREMIUM_STATUSES = frozenset(
    {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING, SubscriptionStatus.PAST_DUE}
)


@dataclass(frozen=True)
class Entitlements:
    owner_id: str
    tier: SubscriptionTier
    status: Optional[SubscriptionStatus]
    is_premium: bool
    current_period_end: Optional[datetime] = None


def _free(owner_id: str) -> Entitlements:
    return Entitlements(owner_id=owner_id, tier=SubscriptionTier.FREE, status=None, is_premium=False)


class EntitlementCache:
    """Entitlements resueltos por propietario sobre un CacheBackend."""

    KEY_PREFIX = "entitlements:"

    def __init__(
        self,
        account_repo: BillingAccountRepository,
        backend: Optional[CacheBackend] = None,
    ) -> None:
        self.account_repo = account_repo
        self.backend = backend or TTLCache(max_size=10_000, default_ttl=300, name="entitlements")

    @classmethod
    def from_settings(cls, settings: BillingSettings) -> "EntitlementCache":
        return cls(
            BillingAccountRepository(),
            TTLCache(
                max_size=settings.entitlement_cache_max_size,
                default_ttl=settings.entitlement_cache_ttl_seconds,
                name="entitlements",
            ),
        )

    def _key(self, owner_id: str) -> str:
        return f"{self.KEY_PREFIX}{owner_id}"

    async def get_entitlements(self, session: AsyncSession, owner_id: str) -> Entitlements:
        cached = self.backend.get(self._key(owner_id))
        if cached is not None:
            return cached

        account = await self.account_repo.get_by_owner(session, owner_id)
        if account is None:
            resolved = _free(owner_id)
        else:
            tier = account.tier_enum
            status = account.status_enum
            resolved = Entitlements(
                owner_id=owner_id,
                tier=tier,
                status=status,
                is_premium=tier.is_premium and status in _PREMIUM_STATUSES,
                current_period_end=account.current_period_end,
            )
        self.backend.set(self._key(owner_id), resolved)
        return resolved

    def invalidate(self, owner_id: str) -> bool:
        removed = self.backend.invalidate(self._key(owner_id))
        if removed:
            logger.debug(f"Entitlements invalidados owner={owner_id}")
        return removed

    def get_stats(self) -> dict:
        return self.backend.get_stats()


__all__ = ["Entitlements", "EntitlementCache"]

# Fin del archivo backend/app/modules/billing/services/entitlement_cache.py
