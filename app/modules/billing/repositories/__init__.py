# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/repositories/__init__.py

Repositorios del módulo Billing.

Autor: Naturinex Billing
Fecha: 2026-09-08
"""

from .billing_account_repository import BillingAccountRepository
from .dunning_repository import DunningAttemptRepository
from .webhook_repository import IdempotencyRecordRepository, WebhookAuditRepository, WebhookEventRepository
from .billing_history_repository import (
    BillingHistoryRepository,
    PaymentMethodRepository,
    SubscriptionEventRepository,
)

__all__ = [
    "BillingAccountRepository",
    "DunningAttemptRepository",
    "IdempotencyRecordRepository",
    "WebhookAuditRepository",
    "WebhookEventRepository",
    "BillingHistoryRepository",
    "PaymentMethodRepository",
    "SubscriptionEventRepository",
]

# Fin del archivo backend/app/modules/billing/repositories/__init__.py
