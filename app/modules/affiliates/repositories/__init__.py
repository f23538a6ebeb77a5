# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/repositories/__init__.py

Autor: Naturinex Billing
Fecha: 2026-09-15
"""

from .affiliate_repository import AffiliateRepository, ReferralClickRepository
from .commission_repository import CommissionRepository
from .payout_repository import AffiliateNotificationRepository, FraudAlertRepository, PayoutRepository

__all__ = [
    "AffiliateRepository",
    "ReferralClickRepository",
    "CommissionRepository",
    "PayoutRepository",
    "FraudAlertRepository",
    "AffiliateNotificationRepository",
]
