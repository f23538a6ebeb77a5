# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/enums/webhook_enums.py

Enums del ledger de webhooks: tipos de evento soportados, estados del
registro de idempotencia y del archivo de eventos.

Autor: Naturinex Billing
Fecha: 08/09/2026
"""

from enum import StrEnum
from typing import Optional


class WebhookEventType(StrEnum):
    """Tipos de evento del gateway con handler registrado."""

    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    SUBSCRIPTION_TRIAL_WILL_END = "customer.subscription.trial_will_end"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
    PAYMENT_METHOD_ATTACHED = "payment_method.attached"

    @classmethod
    def resolve(cls, raw_type: str) -> Optional["WebhookEventType"]:
        """
        Resuelve el nombre completo o su alias corto.

        Examples:
            >>> WebhookEventType.resolve("subscription.created")
            <WebhookEventType.SUBSCRIPTION_CREATED: 'customer.subscription.created'>
            >>> WebhookEventType.resolve("charge.refunded") is None
            True
        """
        try:
            return cls(raw_type)
        except ValueError:
            return _ALIASES.get(raw_type)


_ALIASES = {
    "subscription.created": WebhookEventType.SUBSCRIPTION_CREATED,
    "subscription.updated": WebhookEventType.SUBSCRIPTION_UPDATED,
    "subscription.deleted": WebhookEventType.SUBSCRIPTION_DELETED,
    "trial_will_end": WebhookEventType.SUBSCRIPTION_TRIAL_WILL_END,
    "subscription.trial_will_end": WebhookEventType.SUBSCRIPTION_TRIAL_WILL_END,
}


class IdempotencyStatus(StrEnum):
    """Estado de un par (event_id, dedup_key) en el ledger."""

    RECEIVED = "received"
    PROCESSED = "processed"
    FAILED = "failed"


class WebhookEventStatus(StrEnum):
    """Estado del evento archivado."""

    RECEIVED = "received"
    ARCHIVED = "archived"
    NEEDS_ATTENTION = "needs_attention"


__all__ = [
    "WebhookEventType",
    "IdempotencyStatus",
    "WebhookEventStatus",
]

# Fin del archivo backend/app/modules/billing/enums/webhook_enums.py
