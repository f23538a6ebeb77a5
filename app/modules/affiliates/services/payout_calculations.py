# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/services/payout_calculations.py

Cálculo de montos de un payout a partir del bruto acumulado.

    processing_fee = min(fee fijo, bruto × tasa tope)
    tax_withheld   = bruto × tasa de retención
    net_amount     = max(0, bruto − fee − impuesto)

Todo en Decimal con 2 decimales (ROUND_HALF_UP).

Autor: Naturinex Billing
Fecha: 2026-09-16
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from app.shared.config.settings_payouts import PayoutSettings
from app.shared.utils.money import ZERO, Number, to_money


@dataclass(frozen=True)
class PayoutAmounts:
    gross_amount: Decimal
    processing_fee: Decimal
    tax_withheld: Decimal
    net_amount: Decimal

    def as_dict(self) -> dict[str, str]:
        return {
            "gross_amount": str(self.gross_amount),
            "processing_fee": str(self.processing_fee),
            "tax_withheld": str(self.tax_withheld),
            "net_amount": str(self.net_amount),
        }


def calculate_payout_amounts(
    gross: Number,
    *,
    flat_fee: Number,
    fee_cap_rate: Number,
    tax_rate: Number = 0,
) -> PayoutAmounts:
    """
    Calcula fee, impuesto y neto.

    Examples:
        >>> calculate_payout_amounts(100, flat_fee="2.50", fee_cap_rate="0.05").net_amount
        Decimal('97.50')
        >>> calculate_payout_amounts(20, flat_fee="2.50", fee_cap_rate="0.05").processing_fee
        Decimal('1.00')
        >>> calculate_payout_amounts(0, flat_fee="2.50", fee_cap_rate="0.05").net_amount
        Decimal('0.00')
    """
    gross_amount = max(to_money(gross), ZERO)
    fee = min(to_money(flat_fee), to_money(gross_amount * Decimal(str(fee_cap_rate))))
    fee = max(fee, ZERO)
    tax = max(to_money(gross_amount * Decimal(str(tax_rate))), ZERO)
    net = max(gross_amount - fee - tax, ZERO)
    return PayoutAmounts(
        gross_amount=gross_amount,
        processing_fee=fee,
        tax_withheld=tax,
        net_amount=to_money(net),
    )


def amounts_from_settings(gross: Number, settings: PayoutSettings) -> PayoutAmounts:
    return calculate_payout_amounts(
        gross,
        flat_fee=settings.processing_fee,
        fee_cap_rate=settings.processing_fee_cap_rate,
        tax_rate=settings.tax_withholding_rate,
    )


def sum_amounts(values: Iterable[Number]) -> Decimal:
    total = ZERO
    for value in values:
        total += to_money(value)
    return to_money(total)


__all__ = ["PayoutAmounts", "calculate_payout_amounts", "amounts_from_settings", "sum_amounts"]

# Fin del archivo backend/app/modules/affiliates/services/payout_calculations.py
