# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/models/__init__.py

Modelos ORM del módulo Affiliates.

Autor: Naturinex Billing
Fecha: 2026-09-15
"""

from .affiliate_models import Affiliate, CommissionRecord, ReferralClick
from .payout_models import AffiliateNotification, FraudAlert, Payout

__all__ = [
    "Affiliate",
    "CommissionRecord",
    "ReferralClick",
    "AffiliateNotification",
    "FraudAlert",
    "Payout",
]

# Fin del archivo backend/app/modules/affiliates/models/__init__.py
