# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/errors.py

Taxonomía de errores del módulo Billing.

- SignatureError (Malformed/Stale/Invalid): terminal, nunca se reintenta → 4xx
- WebhookPayloadError: cuerpo no parseable o sin forma esperada → 400
- UnknownCustomer / UnknownSubscription: hueco de mapeo, no se reintenta,
  se estaciona para conciliación manual
- HandlerTransientError: fallo transitorio explícito, se reintenta con backoff
- EventNotReplayable: replay solicitado sobre un evento no estacionado

Autor: Naturinex Billing
Fecha: 08/09/2026
"""

from __future__ import annotations


class BillingError(Exception):
    """Base de errores del módulo Billing."""


# ---------------------------------------------------------------------------
# Firma
# ---------------------------------------------------------------------------
class SignatureError(BillingError):
    """Firma de webhook rechazada."""

    reason = "invalid"


class MalformedSignature(SignatureError):
    """Header ausente o sin t=/v1=."""

    reason = "malformed"


class StaleSignature(SignatureError):
    """Timestamp fuera de la ventana de tolerancia."""

    reason = "stale"


class InvalidSignature(SignatureError):
    """HMAC no coincide."""

    reason = "invalid"


# ---------------------------------------------------------------------------
# Payload / mapeo
# ---------------------------------------------------------------------------
class WebhookPayloadError(BillingError):
    """Evento no parseable o con forma inesperada."""


class NonRetryableHandlerError(BillingError):
    """Error de handler que no se resuelve reintentando."""


class UnknownCustomer(NonRetryableHandlerError):
    def __init__(self, customer_id: str | None):
        self.customer_id = customer_id
        super().__init__(f"No billing account mapped to gateway customer {customer_id!r}")


class UnknownSubscription(NonRetryableHandlerError):
    def __init__(self, subscription_id: str | None):
        self.subscription_id = subscription_id
        super().__init__(f"No billing account mapped to subscription {subscription_id!r}")


class HandlerTransientError(BillingError):
    """Fallo transitorio (red/persistencia); el dispatcher reintenta."""


class EventNotReplayable(BillingError):
    """El evento no existe o no está estacionado para replay."""


class ClaimNotHeld(BillingError):
    """Transición del ledger pedida sobre un claim que no se obtuvo."""

    def __init__(self, event_id: str, dedup_key: str):
        self.event_id = event_id
        self.dedup_key = dedup_key
        super().__init__(f"Ledger claim not held for event={event_id} key={dedup_key}")


__all__ = [
    "BillingError",
    "SignatureError",
    "MalformedSignature",
    "StaleSignature",
    "InvalidSignature",
    "WebhookPayloadError",
    "NonRetryableHandlerError",
    "UnknownCustomer",
    "UnknownSubscription",
    "HandlerTransientError",
    "EventNotReplayable",
    "ClaimNotHeld",
]

# Fin del archivo backend/app/modules/billing/errors.py
