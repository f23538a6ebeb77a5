# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/webhooks/context.py

Contexto que recibe cada handler de evento.

- BillingDependencies: repositorios y servicios que los handlers usan,
  construidos una vez e inyectados (no singletons con estado interno).
- HandlerContext: sesión del intento, evento, settings y una lista de
  notificaciones que el handler solo RECOLECTA; el dispatcher las
  encola después del commit.

Autor: Naturinex Billing
Fecha: 2026-09-11
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_billing import BillingSettings
from app.shared.integrations.notification_sender import NotificationMessage
from ...adapters import GatewayClient, LoggingGatewayClient
from ...enums import SubscriptionTier, WebhookEventType
from ...repositories import (
    BillingAccountRepository,
    BillingHistoryRepository,
    DunningAttemptRepository,
    PaymentMethodRepository,
    SubscriptionEventRepository,
)
from ...schemas import GatewayEvent
from ...services import DunningService, EntitlementCache


@dataclass
class BillingDependencies:
    account_repo: BillingAccountRepository
    history_repo: BillingHistoryRepository
    payment_method_repo: PaymentMethodRepository
    subscription_event_repo: SubscriptionEventRepository
    dunning_service: DunningService
    entitlements: EntitlementCache
    gateway: GatewayClient

    @classmethod
    def build(
        cls,
        settings: BillingSettings,
        *,
        gateway: Optional[GatewayClient] = None,
        entitlements: Optional[EntitlementCache] = None,
    ) -> "BillingDependencies":
        gateway = gateway or LoggingGatewayClient()
        account_repo = BillingAccountRepository()
        payment_method_repo = PaymentMethodRepository()
        entitlements = entitlements or EntitlementCache.from_settings(settings)
        return cls(
            account_repo=account_repo,
            history_repo=BillingHistoryRepository(),
            payment_method_repo=payment_method_repo,
            subscription_event_repo=SubscriptionEventRepository(),
            dunning_service=DunningService(
                DunningAttemptRepository(),
                payment_method_repo,
                gateway,
                settings,
                entitlements,
            ),
            entitlements=entitlements,
            gateway=gateway,
        )


@dataclass
class HandlerContext:
    session: AsyncSession
    event: GatewayEvent
    event_type: WebhookEventType
    settings: BillingSettings
    deps: BillingDependencies
    notifications: list[NotificationMessage] = field(default_factory=list)

    @property
    def previous_attributes(self) -> dict[str, Any]:
        return self.event.data.previous_attributes or {}

    def notify(self, recipient_id: str, template: str, **context: Any) -> None:
        self.notifications.append(
            NotificationMessage(recipient_id=recipient_id, template=template, context=context)
        )

    def tier_for_price(self, price_id: Optional[str]) -> SubscriptionTier:
        """Precio no mapeado → free."""
        if not price_id:
            return SubscriptionTier.FREE
        raw = self.settings.price_tier_map.get(price_id)
        try:
            return SubscriptionTier(raw) if raw else SubscriptionTier.FREE
        except ValueError:
            return SubscriptionTier.FREE


__all__ = ["BillingDependencies", "HandlerContext"]

# Fin del archivo backend/app/modules/billing/facades/webhooks/context.py
