# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/schemas/__init__.py
"""

from .payout_schemas import BatchSummaryOut, FraudCheckOut, ManualPayoutRequest, PayoutOut, PayoutOutcomeOut

__all__ = ["BatchSummaryOut", "FraudCheckOut", "ManualPayoutRequest", "PayoutOut", "PayoutOutcomeOut"]
