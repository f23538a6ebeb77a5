# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/metrics/prometheus_exporter.py

Métricas Prometheus del módulo Billing (ingesta de webhooks y dunning).

Se registran en el REGISTRY por defecto de prometheus_client, que es el
que expone /metrics (ver app.observability.prom).

Autor: Naturinex Billing
Fecha: 2026-09-10
"""

from prometheus_client import Counter, Histogram

# --------------------------------------------------------------------------
# Webhooks
# --------------------------------------------------------------------------
WEBHOOKS_RECEIVED_TOTAL = Counter(
    "billing_webhook_received_total",
    "Total de webhooks recibidos del gateway",
)

WEBHOOKS_OUTCOME_TOTAL = Counter(
    "billing_webhook_outcome_total",
    "Webhooks por outcome (processed/duplicate/ignored/parked/rejected)",
    ["outcome"],
)

SIGNATURE_FAILURES_TOTAL = Counter(
    "billing_webhook_signature_failures_total",
    "Firmas rechazadas por razón (malformed/stale/invalid)",
    ["reason"],
)

HANDLER_RETRIES_TOTAL = Counter(
    "billing_webhook_handler_retries_total",
    "Reintentos de handler por tipo de evento",
    ["event_type"],
)

HANDLER_DURATION_SECONDS = Histogram(
    "billing_webhook_handler_duration_seconds",
    "Duración de un intento de handler (segundos)",
    ["event_type"],
)

# --------------------------------------------------------------------------
# Dunning
# --------------------------------------------------------------------------
DUNNING_ATTEMPTS_TOTAL = Counter(
    "billing_dunning_attempts_total",
    "Intentos de dunning registrados",
)

DUNNING_EXHAUSTED_TOTAL = Counter(
    "billing_dunning_exhausted_total",
    "Ciclos de dunning agotados (suscripción cancelada)",
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

# Fin del archivo backend/app/modules/billing/metrics/prometheus_exporter.py
