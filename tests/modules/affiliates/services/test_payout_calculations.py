# -*- coding: utf-8 -*-
"""
Tests de cálculo de montos de payout.

    fee = min(fee fijo, bruto × tasa tope); neto = max(0, bruto − fee − impuesto)

Autor: Naturinex Billing
Fecha: 2026-09-23
"""

from decimal import Decimal

import pytest

from app.modules.affiliates.services import amounts_from_settings, calculate_payout_amounts, sum_amounts


class TestCalculatePayoutAmounts:
    """Fee fijo con tope porcentual."""

    @pytest.mark.parametrize(
        "gross,fee,net",
        [
            ("100.00", "2.50", "97.50"),
            ("50.00", "2.50", "47.50"),
            ("20.00", "1.00", "19.00"),
            ("0", "0.00", "0.00"),
        ],
    )
    def test_fee_and_net(self, gross, fee, net):
        amounts = calculate_payout_amounts(gross, flat_fee="2.50", fee_cap_rate="0.05")
        assert amounts.processing_fee == Decimal(fee)
        assert amounts.net_amount == Decimal(net)
        assert amounts.tax_withheld == Decimal("0.00")

    def test_tax_withholding(self):
        amounts = calculate_payout_amounts(100, flat_fee="2.50", fee_cap_rate="0.05", tax_rate="0.10")
        assert amounts.tax_withheld == Decimal("10.00")
        assert amounts.net_amount == Decimal("87.50")

    def test_negative_gross_is_clamped(self):
        amounts = calculate_payout_amounts("-5", flat_fee="2.50", fee_cap_rate="0.05")
        assert amounts.gross_amount == Decimal("0.00")
        assert amounts.net_amount == Decimal("0.00")

    def test_as_dict_serializes_strings(self):
        amounts = calculate_payout_amounts(100, flat_fee="2.50", fee_cap_rate="0.05")
        assert amounts.as_dict() == {
            "gross_amount": "100.00",
            "processing_fee": "2.50",
            "tax_withheld": "0.00",
            "net_amount": "97.50",
        }


class TestHelpers:
    def test_amounts_from_settings(self, payout_settings):
        amounts = amounts_from_settings(Decimal("60.00"), payout_settings)
        assert amounts.net_amount == Decimal("57.50")

    def test_sum_amounts_keeps_cents(self):
        assert sum_amounts([Decimal("0.10"), "0.20", 0.3]) == Decimal("0.60")
