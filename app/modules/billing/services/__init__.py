# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/services/__init__.py

Servicios del módulo Billing.

Autor: Naturinex Billing
Fecha: 2026-09-10
"""

from .idempotency_service import Claim, IdempotencyService
from .entitlement_cache import Entitlements, EntitlementCache
from .dunning_service import DunningOutcome, DunningService

__all__ = [
    "Claim",
    "IdempotencyService",
    "Entitlements",
    "EntitlementCache",
    "DunningOutcome",
    "DunningService",
]

# Fin del archivo backend/app/modules/billing/services/__init__.py
