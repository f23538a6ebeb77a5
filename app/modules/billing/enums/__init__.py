# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/enums/__init__.py

Superficie de exportación de enums del módulo Billing.

Autor: Naturinex Billing
Fecha: 08/09/2026
"""

from .subscription_enums import SubscriptionStatus, SubscriptionTier
from .webhook_enums import IdempotencyStatus, WebhookEventStatus, WebhookEventType

__all__ = [
    "SubscriptionStatus",
    "SubscriptionTier",
    "IdempotencyStatus",
    "WebhookEventStatus",
    "WebhookEventType",
]

# Fin del archivo backend/app/modules/billing/enums/__init__.py
