# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/metrics/__init__.py
"""

from .prometheus_exporter import (
    FRAUD_BLOCKS_TOTAL,
    PAYOUT_AMOUNT_DISBURSED_TOTAL,
    PAYOUT_RUN_DURATION_SECONDS,
    PAYOUTS_TOTAL,
)

__all__ = [
    "FRAUD_BLOCKS_TOTAL",
    "PAYOUTS_TOTAL",
    "PAYOUT_AMOUNT_DISBURSED_TOTAL",
    "PAYOUT_RUN_DURATION_SECONDS",
]
