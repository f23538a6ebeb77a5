# -*- coding: utf-8 -*-
"""
Tests de los handlers de estado de facturación, vía EventDispatcher con
el registro real.

Cubre:
- subscription.created: tier por price_id, estado, notificación de bienvenida
- subscription.updated: clasificación por previous_attributes
- subscription.deleted: baja a free e invalidación de entitlements
- trial_will_end: días restantes
- invoice.payment_succeeded: historial, dunning resuelto, past_due → active
- invoice.payment_failed: notificación con siguiente reintento
- customer sin mapeo → evento estacionado sin notificaciones

Autor: Naturinex Billing
Fecha: 2026-09-22
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from app.modules.billing.models import BillingHistory, DunningAttempt, SubscriptionEvent
from app.modules.billing.schemas import GatewayEvent
from app.shared.utils.datetime_helpers import utcnow


def _subscription(price_id: str = "price_pro_monthly", status: str = "active", **extra) -> dict:
    return {
        "id": "sub_1",
        "customer": "cus_1",
        "status": status,
        "items": {"data": [{"price": {"id": price_id}}]},
        **extra,
    }


async def _send(dispatcher, session, event_payload, event_id, event_type, obj, previous=None):
    event = GatewayEvent.model_validate(event_payload(event_id, event_type, obj, previous))
    return await dispatcher.dispatch(session, event)


async def _subscription_events(session) -> list[str]:
    result = await session.execute(select(SubscriptionEvent.event_type).order_by(SubscriptionEvent.id.asc()))
    return list(result.scalars().all())


class TestSubscriptionCreated:
    """customer.subscription.created"""

    @pytest.mark.asyncio
    async def test_sets_tier_and_status(self, session, dispatcher, make_account, event_payload, notifications):
        account = await make_account(subscription_id=None, tier="free", status=None)
        trial_end = int((utcnow() + timedelta(days=14)).timestamp())

        outcome = await _send(
            dispatcher,
            session,
            event_payload,
            "evt_c1",
            "customer.subscription.created",
            _subscription(status="trialing", trial_end=trial_end),
        )

        assert outcome.status == "processed"
        assert outcome.result == {"owner_id": "user_1", "tier": "pro", "status": "trialing"}
        assert account.subscription_id == "sub_1"
        assert account.tier == "pro"
        assert notifications.templates() == ["subscription_welcome"]
        assert await _subscription_events(session) == ["created"]

    @pytest.mark.asyncio
    async def test_unmapped_price_falls_back_to_free(self, session, dispatcher, make_account, event_payload):
        account = await make_account(subscription_id=None, tier="free", status=None)
        await _send(
            dispatcher, session, event_payload, "evt_c2", "customer.subscription.created", _subscription("price_unknown")
        )
        assert account.tier == "free"

    @pytest.mark.asyncio
    async def test_short_alias_is_accepted(self, session, dispatcher, make_account, event_payload):
        await make_account(subscription_id=None, tier="free", status=None)
        outcome = await _send(dispatcher, session, event_payload, "evt_c3", "subscription.created", _subscription())
        assert outcome.status == "processed"

    @pytest.mark.asyncio
    async def test_unknown_customer_parks_without_notifying(self, session, dispatcher, event_payload, notifications):
        outcome = await _send(
            dispatcher, session, event_payload, "evt_c4", "customer.subscription.created", _subscription()
        )
        assert outcome.status == "parked"
        assert outcome.attempts == 1
        assert notifications.templates() == []


class TestSubscriptionUpdated:
    """customer.subscription.updated"""

    @pytest.mark.asyncio
    async def test_tier_change(self, session, dispatcher, make_account, event_payload, notifications):
        account = await make_account(tier="plus")
        previous = {"items": {"data": [{"price": {"id": "price_plus_monthly"}}]}}

        outcome = await _send(
            dispatcher, session, event_payload, "evt_u1", "customer.subscription.updated", _subscription(), previous
        )

        assert outcome.result["changes"] == ["tier_change"]
        assert account.tier == "pro"
        assert notifications.templates() == ["tier_changed"]
        assert await _subscription_events(session) == ["tier_change"]

    @pytest.mark.asyncio
    async def test_no_previous_attributes_means_no_changes(self, session, dispatcher, make_account, event_payload):
        await make_account(tier="plus")
        outcome = await _send(
            dispatcher, session, event_payload, "evt_u2", "customer.subscription.updated", _subscription()
        )
        assert outcome.result["changes"] == []

    @pytest.mark.asyncio
    async def test_past_due_transition(self, session, dispatcher, make_account, event_payload, notifications):
        account = await make_account()
        outcome = await _send(
            dispatcher,
            session,
            event_payload,
            "evt_u3",
            "customer.subscription.updated",
            _subscription(status="past_due"),
            {"status": "active"},
        )
        assert outcome.result["changes"] == ["status_change"]
        assert account.status == "past_due"
        assert notifications.templates() == ["subscription_past_due"]

    @pytest.mark.asyncio
    async def test_cancellation_scheduled(self, session, dispatcher, make_account, event_payload, notifications):
        await make_account()
        period_end = int((utcnow() + timedelta(days=20)).timestamp())
        outcome = await _send(
            dispatcher,
            session,
            event_payload,
            "evt_u4",
            "customer.subscription.updated",
            _subscription(cancel_at_period_end=True, current_period_end=period_end),
            {"cancel_at_period_end": False},
        )
        assert outcome.result["changes"] == ["cancellation"]
        assert notifications.templates() == ["subscription_cancel_scheduled"]


class TestSubscriptionDeleted:
    """customer.subscription.deleted"""

    @pytest.mark.asyncio
    async def test_downgrades_to_free(self, session, dispatcher, make_account, event_payload, entitlements):
        account = await make_account()
        before = await entitlements.get_entitlements(session, "user_1")
        assert before.is_premium is True

        await _send(
            dispatcher,
            session,
            event_payload,
            "evt_d1",
            "customer.subscription.deleted",
            _subscription(status="canceled"),
        )

        assert account.tier == "free"
        assert account.status == "canceled"
        assert account.subscription_id is None
        after = await entitlements.get_entitlements(session, "user_1")
        assert after.is_premium is False


class TestTrialWillEnd:
    """customer.subscription.trial_will_end"""

    @pytest.mark.asyncio
    async def test_reports_days_remaining(self, session, dispatcher, make_account, event_payload, notifications):
        await make_account(status="trialing")
        trial_end = int((utcnow() + timedelta(days=3)).timestamp())

        outcome = await _send(
            dispatcher,
            session,
            event_payload,
            "evt_t1",
            "customer.subscription.trial_will_end",
            _subscription(status="trialing", trial_end=trial_end),
        )

        assert outcome.result["days_until_end"] == 3
        assert notifications.templates() == ["trial_ending"]


class TestInvoices:
    """invoice.payment_failed / invoice.payment_succeeded"""

    @pytest.mark.asyncio
    async def test_payment_failed_notifies_next_retry(self, session, dispatcher, make_account, event_payload, notifications):
        await make_account()
        invoice = {"id": "in_1", "customer": "cus_1", "subscription": "sub_1", "amount_due": 999}

        outcome = await _send(dispatcher, session, event_payload, "evt_f1", "invoice.payment_failed", invoice)

        assert outcome.result["attempt_number"] == 1
        assert outcome.result["max_attempts_reached"] is False
        assert notifications.templates() == ["payment_failed"]
        assert notifications.messages[0].context["amount"] == "9.99"

    @pytest.mark.asyncio
    async def test_payment_succeeded_restores_account(
        self, session, dispatcher, make_account, event_payload, notifications
    ):
        account = await make_account()
        failed = {"id": "in_1", "customer": "cus_1", "subscription": "sub_1", "amount_due": 999}
        await _send(dispatcher, session, event_payload, "evt_f2", "invoice.payment_failed", failed)
        assert account.status == "past_due"

        paid = {
            "id": "in_1",
            "customer": "cus_1",
            "subscription": "sub_1",
            "amount_paid": 999,
            "status_transitions": {"paid_at": int(utcnow().timestamp())},
        }
        outcome = await _send(dispatcher, session, event_payload, "evt_s2", "invoice.payment_succeeded", paid)

        assert outcome.result["dunning_cleared"] == 1
        assert outcome.result["restored"] is True
        assert account.status == "active"
        assert "subscription_reactivated" in notifications.templates()
        assert "payment_receipt" in notifications.templates()

        history = (await session.execute(select(BillingHistory))).scalars().all()
        assert [(h.invoice_id, str(h.amount)) for h in history] == [("in_1", "9.99")]
        attempts = (await session.execute(select(DunningAttempt))).scalars().all()
        assert attempts == []
