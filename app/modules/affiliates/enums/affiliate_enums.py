# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/enums/affiliate_enums.py

Estados de afiliados, comisiones y payouts; rails de pago.

Autor: Naturinex Billing
Fecha: 15/09/2026
"""

from enum import StrEnum


class AffiliateStatus(StrEnum):
    APPROVED = "approved"
    PENDING = "pending"
    SUSPENDED = "suspended"


class CommissionStatus(StrEnum):
    CONFIRMED = "confirmed"
    PAID = "paid"


class PayoutStatus(StrEnum):
    """
    processing → completed | failed | needs_reconciliation
    failed → processing solo vía retry
    needs_reconciliation → completed solo vía reconciliación de operador
    """

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    NEEDS_RECONCILIATION = "needs_reconciliation"


class PayoutRail(StrEnum):
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    WIRE_TRANSFER = "wire_transfer"


class NotificationKind(StrEnum):
    PAYOUT_SUCCESS = "payout_success"
    PAYOUT_FAILED = "payout_failed"


__all__ = [
    "AffiliateStatus",
    "CommissionStatus",
    "PayoutStatus",
    "PayoutRail",
    "NotificationKind",
]

# Fin del archivo backend/app/modules/affiliates/enums/affiliate_enums.py
