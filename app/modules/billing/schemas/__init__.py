# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/schemas/__init__.py

Esquemas Pydantic del módulo Billing.

Autor: Naturinex Billing
Fecha: 2026-09-09
"""

from .event_schemas import (
    EventData,
    GatewayEvent,
    SubscriptionObject,
    FinalizationError,
    InvoiceObject,
    PaymentMethodObject,
)
from .webhook_schemas import WebhookAck, ParkedEventOut, ParkedEventList

__all__ = [
    "EventData",
    "GatewayEvent",
    "SubscriptionObject",
    "FinalizationError",
    "InvoiceObject",
    "PaymentMethodObject",
    "WebhookAck",
    "ParkedEventOut",
    "ParkedEventList",
]

# Fin del archivo backend/app/modules/billing/schemas/__init__.py
