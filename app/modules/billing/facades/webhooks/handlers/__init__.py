# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/webhooks/handlers/__init__.py

Registro estático tipo de evento → (modelo de payload, handler).

Cada WebhookEventType debe tener exactamente una entrada; la
verificación corre al importar el módulo, así un tipo nuevo sin handler
falla al arrancar y no en producción con un evento real.

Autor: Naturinex Billing
Fecha: 2026-09-11
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from ....enums import WebhookEventType
from ....schemas import InvoiceObject, PaymentMethodObject, SubscriptionObject
from ..context import HandlerContext
from .invoice_handlers import handle_invoice_payment_failed, handle_invoice_payment_succeeded
from .payment_method_handlers import handle_payment_method_attached
from .subscription_handlers import (
    handle_subscription_created,
    handle_subscription_deleted,
    handle_subscription_updated,
    handle_trial_will_end,
)

Handler = Callable[[HandlerContext, Any], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class HandlerSpec:
    payload_model: type[BaseModel]
    handler: Handler


HANDLER_REGISTRY: dict[WebhookEventType, HandlerSpec] = {
    WebhookEventType.SUBSCRIPTION_CREATED: HandlerSpec(SubscriptionObject, handle_subscription_created),
    WebhookEventType.SUBSCRIPTION_UPDATED: HandlerSpec(SubscriptionObject, handle_subscription_updated),
    WebhookEventType.SUBSCRIPTION_DELETED: HandlerSpec(SubscriptionObject, handle_subscription_deleted),
    WebhookEventType.SUBSCRIPTION_TRIAL_WILL_END: HandlerSpec(SubscriptionObject, handle_trial_will_end),
    WebhookEventType.INVOICE_PAYMENT_SUCCEEDED: HandlerSpec(InvoiceObject, handle_invoice_payment_succeeded),
    WebhookEventType.INVOICE_PAYMENT_FAILED: HandlerSpec(InvoiceObject, handle_invoice_payment_failed),
    WebhookEventType.PAYMENT_METHOD_ATTACHED: HandlerSpec(PaymentMethodObject, handle_payment_method_attached),
}


def check_registry(registry: dict[WebhookEventType, HandlerSpec]) -> None:
    missing = [t.value for t in WebhookEventType if t not in registry]
    if missing:
        raise RuntimeError(f"Tipos de evento sin handler registrado: {missing}")


check_registry(HANDLER_REGISTRY)


__all__ = ["Handler", "HandlerSpec", "HANDLER_REGISTRY", "check_registry"]

# Fin del archivo backend/app/modules/billing/facades/webhooks/handlers/__init__.py
