# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/enums/subscription_enums.py

Enums de suscripción: estado de la cuenta de facturación y tier.

Autor: Naturinex Billing
Fecha: 08/09/2026
"""

from enum import StrEnum


class SubscriptionStatus(StrEnum):
    """Estado de la suscripción en el gateway, reflejado en BillingAccount."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"

    @classmethod
    def from_gateway(cls, value: str | None) -> "SubscriptionStatus":
        """
        Normaliza el estado enviado por el gateway.

        Estados que el motor no modela (unpaid, incomplete_expired, paused)
        se colapsan al más cercano.
        """
        mapping = {
            "unpaid": cls.PAST_DUE,
            "incomplete_expired": cls.CANCELED,
            "paused": cls.INCOMPLETE,
            "cancelled": cls.CANCELED,
        }
        if not value:
            return cls.INCOMPLETE
        try:
            return cls(value)
        except ValueError:
            return mapping.get(value, cls.INCOMPLETE)


class SubscriptionTier(StrEnum):
    """Tier comercial derivado del price_id."""

    FREE = "free"
    PLUS = "plus"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @property
    def is_premium(self) -> bool:
        return self is not SubscriptionTier.FREE


__all__ = ["SubscriptionStatus", "SubscriptionTier"]

# Fin del archivo backend/app/modules/billing/enums/subscription_enums.py
