# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/enums/__init__.py

Autor: Naturinex Billing
Fecha: 15/09/2026
"""

from .affiliate_enums import AffiliateStatus, CommissionStatus, NotificationKind, PayoutRail, PayoutStatus

__all__ = [
    "AffiliateStatus",
    "CommissionStatus",
    "NotificationKind",
    "PayoutRail",
    "PayoutStatus",
]
