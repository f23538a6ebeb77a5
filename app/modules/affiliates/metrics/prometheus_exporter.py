# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/metrics/prometheus_exporter.py

Métricas Prometheus de screening de fraude y payouts.

Autor: Naturinex Billing
Fecha: 2026-09-16
"""

from prometheus_client import Counter, Histogram

FRAUD_BLOCKS_TOTAL = Counter(
    "affiliate_fraud_blocks_total",
    "Payouts bloqueados por screening de fraude",
)

PAYOUTS_TOTAL = Counter(
    "affiliate_payouts_total",
    "Payouts por outcome (completed/failed/skipped/needs_reconciliation/reconciled)",
    ["outcome"],
)

PAYOUT_AMOUNT_DISBURSED_TOTAL = Counter(
    "affiliate_payout_amount_disbursed_total",
    "Monto neto desembolsado (unidades de moneda)",
)

PAYOUT_RUN_DURATION_SECONDS = Histogram(
    "affiliate_payout_run_duration_seconds",
    "Duración de una corrida programada de payouts",
)

__all__ = [
    "FRAUD_BLOCKS_TOTAL",
    "PAYOUTS_TOTAL",
    "PAYOUT_AMOUNT_DISBURSED_TOTAL",
    "PAYOUT_RUN_DURATION_SECONDS",
]

# Fin del archivo backend/app/modules/affiliates/metrics/prometheus_exporter.py
