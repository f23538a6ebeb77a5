# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/errors.py

Taxonomía de errores del módulo Affiliates.

- AffiliateNotFound / PayoutNotFound → 404
- EligibilityError: el afiliado no califica; no se crea payout ni hay efectos
- ProviderTransferError: la transferencia falló; se registra en el Payout
- PayoutLinkConflict: otra corrida ya vinculó alguna comisión
- PayoutNotRetryable: el payout no está failed o agotó reintentos
- PayoutStateConflict: la transición no aplica al estado actual (p. ej.
  reconciliar un payout que no está needs_reconciliation)

FraudBlocked NO es una excepción: es un FraudCheckResult con passed=False.

Autor: Naturinex Billing
Fecha: 15/09/2026
"""

from __future__ import annotations

from typing import Optional, Sequence


class AffiliateError(Exception):
    """Base de errores del módulo Affiliates."""


class AffiliateNotFound(AffiliateError):
    def __init__(self, affiliate_id: int):
        self.affiliate_id = affiliate_id
        super().__init__("Affiliate not found")


class PayoutNotFound(AffiliateError):
    def __init__(self, payout_id: int):
        self.payout_id = payout_id
        super().__init__("Payout not found")


class EligibilityError(AffiliateError):
    """El afiliado no cumple las condiciones de payout."""

    def __init__(self, message: str, reasons: Sequence[str] = ()):
        self.reasons = list(reasons)
        super().__init__(message)


class ProviderTransferError(AffiliateError):
    """El proveedor rechazó o no completó la transferencia."""


class PayoutLinkConflict(AffiliateError):
    def __init__(self, affiliate_id: int, expected: int, linked: int):
        self.affiliate_id = affiliate_id
        super().__init__(
            f"Commission linkage conflict for affiliate {affiliate_id}: expected {expected}, linked {linked}"
        )


class PayoutNotRetryable(AffiliateError):
    """Solo payouts failed con retry_count < max pueden reintentarse."""


class PayoutStateConflict(AffiliateError):
    """El payout no está en el estado que la transición requiere."""

    def __init__(self, payout_id: int, expected: str, status: Optional[str] = None):
        self.payout_id = payout_id
        self.status = status
        found = f"is {status}" if status else "changed concurrently"
        super().__init__(f"Payout {payout_id} {found}, expected {expected}")


__all__ = [
    "AffiliateError",
    "AffiliateNotFound",
    "PayoutNotFound",
    "EligibilityError",
    "ProviderTransferError",
    "PayoutLinkConflict",
    "PayoutNotRetryable",
    "PayoutStateConflict",
]

# Fin del archivo backend/app/modules/affiliates/errors.py
