# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/metrics/__init__.py

Métricas del módulo Billing.
"""

from .prometheus_exporter import (
    WEBHOOKS_RECEIVED_TOTAL,
    WEBHOOKS_OUTCOME_TOTAL,
    SIGNATURE_FAILURES_TOTAL,
    HANDLER_RETRIES_TOTAL,
    HANDLER_DURATION_SECONDS,
    DUNNING_ATTEMPTS_TOTAL,
    DUNNING_EXHAUSTED_TOTAL,
)

__all__ = [
    "WEBHOOKS_RECEIVED_TOTAL",
    "WEBHOOKS_OUTCOME_TOTAL",
    "SIGNATURE_FAILURES_TOTAL",
    "HANDLER_RETRIES_TOTAL",
    "HANDLER_DURATION_SECONDS",
    "DUNNING_ATTEMPTS_TOTAL",
    "DUNNING_EXHAUSTED_TOTAL",
]
