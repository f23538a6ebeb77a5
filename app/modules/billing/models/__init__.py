# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/models/__init__.py

Modelos ORM del módulo Billing.

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from .billing_account_models import BillingAccount
from .dunning_models import DunningAttempt
from .webhook_models import IdempotencyRecord, WebhookAuditLog, WebhookEvent
from .billing_history_models import BillingHistory, PaymentMethod, SubscriptionEvent

__all__ = [
    "BillingAccount",
    "DunningAttempt",
    "IdempotencyRecord",
    "WebhookAuditLog",
    "WebhookEvent",
    "BillingHistory",
    "PaymentMethod",
    "SubscriptionEvent",
]

# Fin del archivo backend/app/modules/billing/models/__init__.py
