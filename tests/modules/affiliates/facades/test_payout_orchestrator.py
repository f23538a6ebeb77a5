# -*- coding: utf-8 -*-
"""
Tests del orquestador de payouts (PayoutOrchestrator).

Cubre:
- Payout manual exitoso: montos, comisiones paid, total_paid, notificación
- Fallo del proveedor: payout failed, comisiones vinculadas sin pagar
- Reintento: misma vinculación y misma clave de idempotencia, tope de reintentos
- Contabilidad fallida tras transferir: needs_reconciliation y reconciliación
- Elegibilidad: no elegible, sin comisiones, bypass de operador
- Screening fallido: alerta persistida, sin payout
- Conflicto de vinculación: rollback completo
- Corrida programada: resumen con procesados, fallidos y omitidos; umbral inclusivo

Autor: Naturinex Billing
Fecha: 2026-09-23
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.modules.affiliates.enums import CommissionStatus
from app.modules.affiliates.errors import (
    AffiliateNotFound,
    EligibilityError,
    PayoutLinkConflict,
    PayoutNotFound,
    PayoutNotRetryable,
    PayoutStateConflict,
)
from app.modules.affiliates.models import (
    Affiliate,
    AffiliateNotification,
    CommissionRecord,
    FraudAlert,
    Payout,
)
from app.shared.utils.datetime_helpers import utcnow

async def _fresh(session, model, pk):
    result = await session.execute(
        select(model).where(model.id == pk).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _commissions(session, affiliate_id) -> list[CommissionRecord]:
    result = await session.execute(
        select(CommissionRecord)
        .where(CommissionRecord.affiliate_id == affiliate_id)
        .order_by(CommissionRecord.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _count(session, model) -> int:
    return (await session.execute(select(func.count(model.id)))).scalar_one()


class TestManualPayoutSuccess:
    @pytest.mark.asyncio
    async def test_pays_net_amount(
        self, session, orchestrator, make_affiliate, fake_provider, notifications, bank_details
    ):
        affiliate = await make_affiliate((Decimal("40.00"), Decimal("20.00")))

        outcome = await orchestrator.process_manual_payout(session, affiliate.id)

        assert outcome.success is True
        assert outcome.amount == Decimal("57.50")
        assert outcome.reference == "REF-1"
        assert outcome.provider == "bank_ach"

        payout = await _fresh(session, Payout, outcome.payout_id)
        assert payout.status == "completed"
        assert payout.gross_amount == Decimal("60.00")
        assert payout.processing_fee == Decimal("2.50")
        assert payout.commission_count == 2
        assert payout.provider_status == "pending"

        commissions = await _commissions(session, affiliate.id)
        assert {c.status for c in commissions} == {"paid"}
        assert {c.payout_id for c in commissions} == {payout.id}

        refreshed = await _fresh(session, Affiliate, affiliate.id)
        assert refreshed.total_paid == Decimal("57.50")
        assert refreshed.total_pending == Decimal("0.00")

        request = fake_provider.requests[0]
        assert request.idempotency_key == f"payout-{payout.id}"
        assert request.destination == bank_details
        assert request.amount == Decimal("57.50")

        notification = (await session.execute(select(AffiliateNotification))).scalar_one()
        assert notification.title == "Payout Processed Successfully"
        assert "$57.50" in notification.message
        assert "Bank Transfer" in notification.message
        assert notifications.templates() == ["payout_success"]


class TestManualPayoutFailure:
    @pytest.mark.asyncio
    async def test_provider_error_marks_failed(self, session, orchestrator, make_affiliate, fake_provider, notifications):
        affiliate = await make_affiliate()
        fake_provider.error = "insufficient funds"

        outcome = await orchestrator.process_manual_payout(session, affiliate.id)

        assert outcome.success is False
        assert outcome.error == "Bank transfer failed: insufficient funds"
        payout = await _fresh(session, Payout, outcome.payout_id)
        assert payout.status == "failed"
        assert payout.failure_reason == "Bank transfer failed: insufficient funds"

        commissions = await _commissions(session, affiliate.id)
        assert [(c.status, c.payout_id) for c in commissions] == [("confirmed", payout.id)]

        refreshed = await _fresh(session, Affiliate, affiliate.id)
        assert refreshed.total_paid == Decimal("0.00")

        notification = (await session.execute(select(AffiliateNotification))).scalar_one()
        assert notification.title == "Payout Processing Failed"
        assert notification.priority == "urgent"
        assert notifications.templates() == ["payout_failed"]

    @pytest.mark.asyncio
    async def test_missing_destination_field(self, session, orchestrator, make_affiliate, fake_provider):
        affiliate = await make_affiliate(details={"account_number": "000123456789", "account_holder_name": "Ana"})

        outcome = await orchestrator.process_manual_payout(session, affiliate.id)

        assert outcome.success is False
        assert outcome.error == "Bank transfer failed: missing routing_number"
        assert fake_provider.requests == []


class TestRetry:
    @pytest.mark.asyncio
    async def test_retry_reuses_linkage(self, session, orchestrator, make_affiliate, fake_provider):
        affiliate = await make_affiliate()
        fake_provider.error = "timeout upstream"
        failed = await orchestrator.process_manual_payout(session, affiliate.id)

        fake_provider.error = None
        outcome = await orchestrator.retry_failed_payout(session, failed.payout_id)

        assert outcome.success is True
        assert outcome.payout_id == failed.payout_id
        assert [r.idempotency_key for r in fake_provider.requests] == [f"payout-{failed.payout_id}"] * 2

        payout = await _fresh(session, Payout, failed.payout_id)
        assert payout.status == "completed"
        assert payout.retry_count == 1
        commissions = await _commissions(session, affiliate.id)
        assert [c.status for c in commissions] == ["paid"]
        assert await _count(session, Payout) == 1

    @pytest.mark.asyncio
    async def test_retries_are_capped(self, session, orchestrator, make_affiliate, fake_provider):
        affiliate = await make_affiliate()
        fake_provider.error = "rejected"
        failed = await orchestrator.process_manual_payout(session, affiliate.id)

        for _ in range(3):
            outcome = await orchestrator.retry_failed_payout(session, failed.payout_id)
            assert outcome.success is False

        with pytest.raises(PayoutNotRetryable):
            await orchestrator.retry_failed_payout(session, failed.payout_id)

    @pytest.mark.asyncio
    async def test_completed_payout_is_not_retryable(self, session, orchestrator, make_affiliate):
        affiliate = await make_affiliate()
        outcome = await orchestrator.process_manual_payout(session, affiliate.id)

        with pytest.raises(PayoutNotRetryable):
            await orchestrator.retry_failed_payout(session, outcome.payout_id)

    @pytest.mark.asyncio
    async def test_unknown_payout(self, session, orchestrator):
        with pytest.raises(PayoutNotFound):
            await orchestrator.retry_failed_payout(session, 9999)


class TestEligibilityGate:
    @pytest.mark.asyncio
    async def test_below_threshold_is_rejected(self, session, orchestrator, make_affiliate, fake_provider):
        affiliate = await make_affiliate((Decimal("20.00"),))

        with pytest.raises(EligibilityError) as exc:
            await orchestrator.process_manual_payout(session, affiliate.id)

        assert str(exc.value) == "Affiliate not eligible for payout"
        assert exc.value.reasons == ["Pending amount 20.00 below threshold 50.00"]
        assert await _count(session, Payout) == 0
        assert fake_provider.requests == []

    @pytest.mark.asyncio
    async def test_bypass_skips_gate(self, session, orchestrator, make_affiliate):
        affiliate = await make_affiliate((Decimal("20.00"),))

        outcome = await orchestrator.process_manual_payout(session, affiliate.id, bypass_eligibility=True)

        assert outcome.success is True
        assert outcome.amount == Decimal("19.00")

    @pytest.mark.asyncio
    async def test_bypass_without_commissions(self, session, orchestrator, make_affiliate):
        affiliate = await make_affiliate(commissions=())

        with pytest.raises(EligibilityError) as exc:
            await orchestrator.process_manual_payout(session, affiliate.id, bypass_eligibility=True)

        assert str(exc.value) == "No pending commissions found"

    @pytest.mark.asyncio
    async def test_unknown_affiliate(self, session, orchestrator):
        with pytest.raises(AffiliateNotFound):
            await orchestrator.process_manual_payout(session, 4242)

    @pytest.mark.asyncio
    async def test_fraud_block_records_alert(self, session, orchestrator, make_affiliate, fake_provider):
        target = await make_affiliate(name="Ana Torres")
        await make_affiliate(name="Beto Ruiz", commissions=())
        target.total_clicks = 100
        target.total_conversions = 20
        await session.commit()

        with pytest.raises(EligibilityError) as exc:
            await orchestrator.process_manual_payout(session, target.id)

        assert exc.value.reasons == ["Fraud check failed (score 50)"]
        alert = (await session.execute(select(FraudAlert))).scalar_one()
        assert alert.affiliate_id == target.id
        assert alert.risk_score == 50
        assert await _count(session, Payout) == 0
        assert fake_provider.requests == []

    @pytest.mark.asyncio
    async def test_check_fraud_has_no_side_effects(self, session, orchestrator, make_affiliate):
        affiliate = await make_affiliate()
        result = await orchestrator.check_fraud(session, affiliate.id)
        assert result.passed is True
        assert await _count(session, FraudAlert) == 0


class TestLinkConflict:
    @pytest.mark.asyncio
    async def test_conflict_rolls_back(self, session, orchestrator, make_affiliate, monkeypatch):
        affiliate = await make_affiliate()
        affiliate_id = affiliate.id

        async def _lost_race(session, commission_ids, payout_id):
            return 0

        monkeypatch.setattr(orchestrator.deps.commission_repo, "link_to_payout", _lost_race)

        with pytest.raises(PayoutLinkConflict):
            await orchestrator.process_manual_payout(session, affiliate_id)

        assert await _count(session, Payout) == 0
        commissions = await _commissions(session, affiliate_id)
        assert [c.payout_id for c in commissions] == [None]


class TestBookkeepingAfterTransfer:
    """El proveedor transfirió pero la contabilidad local falló."""

    @staticmethod
    def _break_notifications(orchestrator, monkeypatch):
        async def _db_hiccup(*args, **kwargs):
            raise RuntimeError("db hiccup")

        monkeypatch.setattr(orchestrator.deps.notification_repo, "add", _db_hiccup)

    @pytest.mark.asyncio
    async def test_scheduled_run_flags_reconciliation(
        self, session, orchestrator, make_affiliate, fake_provider, notifications, monkeypatch
    ):
        affiliate = await make_affiliate()
        affiliate_id = affiliate.id
        self._break_notifications(orchestrator, monkeypatch)

        summary = await orchestrator.run_scheduled_payouts(session)

        assert summary.processed == 0
        assert summary.failed == 0
        assert summary.needs_reconciliation == 1
        assert summary.total_amount == Decimal("57.50")
        assert "db hiccup" in summary.errors[0]["error"]
        assert len(fake_provider.requests) == 1

        payout = (
            await session.execute(select(Payout).execution_options(populate_existing=True))
        ).scalar_one()
        assert payout.status == "needs_reconciliation"
        assert payout.payment_reference == "REF-1"
        assert payout.payment_provider == "bank_ach"
        assert "REF-1" in payout.failure_reason

        commissions = await _commissions(session, affiliate_id)
        assert [(c.status, c.payout_id) for c in commissions] == [("confirmed", payout.id)]
        refreshed = await _fresh(session, Affiliate, affiliate_id)
        assert refreshed.total_paid == Decimal("0.00")
        assert notifications.templates() == []

    @pytest.mark.asyncio
    async def test_reconcile_settles_without_new_transfer(
        self, session, orchestrator, make_affiliate, fake_provider, notifications, monkeypatch
    ):
        affiliate = await make_affiliate()
        affiliate_id = affiliate.id
        self._break_notifications(orchestrator, monkeypatch)

        outcome = await orchestrator.process_manual_payout(session, affiliate_id)
        assert outcome.status == "needs_reconciliation"
        assert outcome.reference == "REF-1"

        with pytest.raises(PayoutNotRetryable):
            await orchestrator.retry_failed_payout(session, outcome.payout_id)

        monkeypatch.delattr(orchestrator.deps.notification_repo, "add")
        reconciled = await orchestrator.reconcile_payout(session, outcome.payout_id)

        assert reconciled.success is True
        assert reconciled.reference == "REF-1"
        assert len(fake_provider.requests) == 1

        payout = await _fresh(session, Payout, outcome.payout_id)
        assert payout.status == "completed"
        assert payout.processed_at is not None
        commissions = await _commissions(session, affiliate_id)
        assert [c.status for c in commissions] == ["paid"]
        refreshed = await _fresh(session, Affiliate, affiliate_id)
        assert refreshed.total_paid == Decimal("57.50")
        assert notifications.templates() == ["payout_success"]

        with pytest.raises(PayoutStateConflict):
            await orchestrator.reconcile_payout(session, outcome.payout_id)

    @pytest.mark.asyncio
    async def test_reconcile_unknown_payout(self, session, orchestrator):
        with pytest.raises(PayoutNotFound):
            await orchestrator.reconcile_payout(session, 9999)


class TestScheduledRun:
    @pytest.mark.asyncio
    async def test_summary(self, session, orchestrator, make_affiliate):
        await make_affiliate(name="Ana Torres")
        await make_affiliate(
            (Decimal("20.00"),),
            name="Beto Ruiz",
            details={"account_number": "111", "routing_number": "220000000", "account_holder_name": "Beto"},
        )
        await make_affiliate((Decimal("80.00"),), name="Caro Diaz", method="paypal", details={"paypal_email": ""})

        summary = await orchestrator.run_scheduled_payouts(session)

        assert summary.processed == 1
        assert summary.failed == 1
        assert summary.skipped == 1
        assert summary.total_amount == Decimal("57.50")
        assert summary.errors[0]["error"] == "PayPal payout failed: missing paypal_email"
        assert len(summary.payouts) == 2

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self, session, orchestrator, make_affiliate, fake_provider):
        """
        Pendiente 40.00 con umbral 50.00 nunca entra en la corrida;
        al llegar exactamente a 50.00 sí.
        """
        affiliate = await make_affiliate((Decimal("40.00"),))
        affiliate_id = affiliate.id

        summary = await orchestrator.run_scheduled_payouts(session)

        assert (summary.processed, summary.skipped) == (0, 1)
        assert await _count(session, Payout) == 0
        assert fake_provider.requests == []

        session.add(
            CommissionRecord(
                affiliate_id=affiliate_id,
                amount=Decimal("10.00"),
                status=CommissionStatus.CONFIRMED.value,
                transaction_date=utcnow(),
            )
        )
        await session.commit()

        summary = await orchestrator.run_scheduled_payouts(session)

        assert (summary.processed, summary.skipped) == (1, 0)
        payout = (await session.execute(select(Payout))).scalar_one()
        assert payout.gross_amount == Decimal("50.00")
        assert payout.commission_count == 2
        assert summary.total_amount == Decimal("47.50")

    @pytest.mark.asyncio
    async def test_empty_run(self, session, orchestrator):
        summary = await orchestrator.run_scheduled_payouts(session)
        assert summary.as_dict() == {
            "processed": 0,
            "failed": 0,
            "skipped": 0,
            "needs_reconciliation": 0,
            "total_amount": "0.00",
            "errors": [],
            "payouts": [],
        }
