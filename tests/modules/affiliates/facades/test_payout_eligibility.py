# -*- coding: utf-8 -*-
"""
Tests de la compuerta de elegibilidad de payouts.

Cubre:
- Umbral efectivo = max(umbral propio, umbral global)
- Estado distinto de approved, rail no soportado, pendiente bajo umbral
- Demasiados payouts fallidos recientes
- El screening solo corre si no hay otras razones
- Screening fallido → fraud_blocked

Autor: Naturinex Billing
Fecha: 2026-09-23
"""

from decimal import Decimal

import pytest

from app.modules.affiliates.enums import PayoutStatus
from app.modules.affiliates.facades.payouts import effective_threshold, evaluate_eligibility
from app.modules.affiliates.models import Affiliate, Payout
from app.modules.affiliates.services import FraudCheckResult
from app.shared.utils.datetime_helpers import utcnow


class StubFraud:
    """Screening controlado: registra llamadas y devuelve el score fijado."""

    def __init__(self, score: int = 0, threshold: int = 50):
        self.score_value = score
        self.threshold = threshold
        self.calls = 0

    async def score(self, session, affiliate, *, now=None):
        self.calls += 1
        return FraudCheckResult(
            affiliate_id=affiliate.id,
            risk_score=self.score_value,
            reasons=["stub"] if self.score_value else [],
            passed=self.score_value < self.threshold,
        )


async def _evaluate(session, affiliate, pending, payout_deps, fraud=None):
    return await evaluate_eligibility(
        session,
        affiliate,
        Decimal(pending),
        settings=payout_deps.settings,
        payout_repo=payout_deps.payout_repo,
        fraud=fraud or StubFraud(),
        now=utcnow(),
    )


class TestEffectiveThreshold:
    """max(propio, global)"""

    def test_global_wins_over_lower_own(self, payout_settings):
        affiliate = Affiliate(name="x", minimum_payout_threshold=Decimal("40.00"))
        assert effective_threshold(affiliate, payout_settings) == Decimal("50.00")

    def test_own_wins_when_higher(self, payout_settings):
        affiliate = Affiliate(name="x", minimum_payout_threshold=Decimal("75.00"))
        assert effective_threshold(affiliate, payout_settings) == Decimal("75.00")

    def test_global_when_unset(self, payout_settings):
        assert effective_threshold(Affiliate(name="x"), payout_settings) == Decimal("50.00")


class TestEligibility:
    @pytest.mark.asyncio
    async def test_eligible_affiliate(self, session, make_affiliate, payout_deps):
        affiliate = await make_affiliate()
        fraud = StubFraud()

        result = await _evaluate(session, affiliate, "60.00", payout_deps, fraud)

        assert result.eligible is True
        assert result.reasons == []
        assert fraud.calls == 1

    @pytest.mark.asyncio
    async def test_below_global_threshold_even_with_lower_own(self, session, make_affiliate, payout_deps):
        affiliate = await make_affiliate(threshold=Decimal("40.00"))
        fraud = StubFraud()

        result = await _evaluate(session, affiliate, "45.00", payout_deps, fraud)

        assert result.eligible is False
        assert result.threshold == Decimal("50.00")
        assert result.reasons == ["Pending amount 45.00 below threshold 50.00"]
        assert fraud.calls == 0

    @pytest.mark.asyncio
    async def test_status_must_be_approved(self, session, make_affiliate, payout_deps):
        affiliate = await make_affiliate(status="suspended")
        result = await _evaluate(session, affiliate, "60.00", payout_deps)
        assert result.reasons == ["Affiliate status is suspended"]

    @pytest.mark.asyncio
    async def test_unsupported_rail(self, session, make_affiliate, payout_deps):
        affiliate = await make_affiliate(method="crypto")
        result = await _evaluate(session, affiliate, "60.00", payout_deps)
        assert result.reasons == ["Unsupported payment method: crypto"]

    @pytest.mark.asyncio
    async def test_recent_failures_block(self, session, make_affiliate, payout_deps):
        affiliate = await make_affiliate()
        for _ in range(3):
            session.add(
                Payout(
                    affiliate_id=affiliate.id,
                    gross_amount=Decimal("60.00"),
                    processing_fee=Decimal("2.50"),
                    net_amount=Decimal("57.50"),
                    payment_method="bank_transfer",
                    status=PayoutStatus.FAILED.value,
                    requested_at=utcnow(),
                )
            )
        await session.commit()

        result = await _evaluate(session, affiliate, "60.00", payout_deps)

        assert result.eligible is False
        assert result.reasons[0].startswith("Too many failed payouts (3)")

    @pytest.mark.asyncio
    async def test_fraud_failure_is_flagged(self, session, make_affiliate, payout_deps):
        affiliate = await make_affiliate()

        result = await _evaluate(session, affiliate, "60.00", payout_deps, StubFraud(score=70))

        assert result.eligible is False
        assert result.fraud_blocked is True
        assert result.reasons == ["Fraud check failed (score 70)"]
        assert result.as_dict()["fraud"]["risk_score"] == 70
