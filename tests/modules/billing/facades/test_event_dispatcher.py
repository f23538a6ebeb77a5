# -*- coding: utf-8 -*-
"""
Tests del dispatcher de eventos (EventDispatcher) y del replay manual.

Cubre:
- Reintentos con backoff exponencial (base × 2^(n-1)) hasta éxito
- Agotar intentos → evento estacionado (needs_attention), registro failed
- Error no reintentable → estacionado al primer intento
- Timeout por intento cuenta como fallo reintentable
- Tipo desconocido → ignored sin efectos
- Entrega duplicada → el handler corre una sola vez
- Payload inválido → ValidationError antes de tocar el ledger
- Replay de un evento estacionado y rechazo de eventos no estacionados

Autor: Naturinex Billing
Fecha: 2026-09-21
"""

import asyncio

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from app.modules.billing.enums import IdempotencyStatus, WebhookEventStatus, WebhookEventType
from app.modules.billing.errors import EventNotReplayable, HandlerTransientError, UnknownCustomer
from app.modules.billing.facades.webhooks import (
    EventDispatcher,
    HandlerSpec,
    list_parked_events,
    replay_parked_event,
)
from app.modules.billing.models import IdempotencyRecord, PaymentMethod, WebhookEvent
from app.modules.billing.schemas import GatewayEvent, PaymentMethodObject


class FlakyHandler:
    """Falla `failures` veces con `error` y luego responde."""

    def __init__(self, failures: int, error: Exception | None = None):
        self.failures = failures
        self.error = error or HandlerTransientError("db blip")
        self.calls = 0

    async def __call__(self, ctx, payload):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return {"payment_method_id": payload.id}


class SlowHandler:
    def __init__(self):
        self.calls = 0

    async def __call__(self, ctx, payload):
        self.calls += 1
        await asyncio.sleep(5)
        return {}


def _build(settings, deps, handler):
    sleeps: list[float] = []

    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    registry = {WebhookEventType.PAYMENT_METHOD_ATTACHED: HandlerSpec(PaymentMethodObject, handler)}
    return EventDispatcher(settings, deps, registry=registry, sleep=_sleep), sleeps


def _pm_event(event_payload, event_id: str = "evt_pm_1") -> GatewayEvent:
    return GatewayEvent.model_validate(
        event_payload(event_id, "payment_method.attached", {"id": "pm_1", "customer": "cus_1"})
    )


async def _event_row(session, event_id: str) -> WebhookEvent:
    result = await session.execute(
        select(WebhookEvent).where(WebhookEvent.event_id == event_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _ledger_row(session, event_id: str) -> IdempotencyRecord:
    result = await session.execute(
        select(IdempotencyRecord)
        .where(IdempotencyRecord.event_id == event_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestRetries:
    """Política de reintentos locales."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self, session, billing_settings, billing_deps, event_payload):
        handler = FlakyHandler(failures=2)
        dispatcher, sleeps = _build(billing_settings, billing_deps, handler)

        outcome = await dispatcher.dispatch(session, _pm_event(event_payload))

        assert outcome.status == "processed"
        assert outcome.attempts == 3
        assert handler.calls == 3
        assert sleeps == pytest.approx([0.01, 0.02])

        record = await _ledger_row(session, "evt_pm_1")
        assert record.status == IdempotencyStatus.PROCESSED.value
        assert record.attempts == 3
        event = await _event_row(session, "evt_pm_1")
        assert event.status == WebhookEventStatus.ARCHIVED.value

    @pytest.mark.asyncio
    async def test_exhausted_retries_park_event(self, session, billing_settings, billing_deps, event_payload):
        handler = FlakyHandler(failures=10)
        dispatcher, sleeps = _build(billing_settings, billing_deps, handler)

        outcome = await dispatcher.dispatch(session, _pm_event(event_payload))

        assert outcome.status == "parked"
        assert outcome.attempts == 3
        assert handler.calls == 3
        assert len(sleeps) == 2
        assert "HandlerTransientError: db blip" in outcome.error

        record = await _ledger_row(session, "evt_pm_1")
        assert record.status == IdempotencyStatus.FAILED.value
        event = await _event_row(session, "evt_pm_1")
        assert event.status == WebhookEventStatus.NEEDS_ATTENTION.value
        assert event.attempts == 3
        assert "db blip" in event.last_error

    @pytest.mark.asyncio
    async def test_non_retryable_error_parks_immediately(self, session, billing_settings, billing_deps, event_payload):
        handler = FlakyHandler(failures=10, error=UnknownCustomer("cus_missing"))
        dispatcher, sleeps = _build(billing_settings, billing_deps, handler)

        outcome = await dispatcher.dispatch(session, _pm_event(event_payload))

        assert outcome.status == "parked"
        assert outcome.attempts == 1
        assert handler.calls == 1
        assert sleeps == []
        assert "UnknownCustomer" in outcome.error

    @pytest.mark.asyncio
    async def test_attempt_timeout_counts_as_failure(self, session, billing_settings, billing_deps, event_payload):
        settings = billing_settings.model_copy(update={"webhook_handler_timeout_seconds": 0.05})
        handler = SlowHandler()
        dispatcher, _ = _build(settings, billing_deps, handler)

        outcome = await dispatcher.dispatch(session, _pm_event(event_payload))

        assert outcome.status == "parked"
        assert handler.calls == 3
        assert "TimeoutError" in outcome.error

    @pytest.mark.asyncio
    async def test_total_budget_stops_retries(self, session, billing_settings, billing_deps, event_payload):
        settings = billing_settings.model_copy(
            update={"webhook_retry_base_delay_seconds": 60.0, "webhook_processing_timeout_seconds": 30.0}
        )
        handler = FlakyHandler(failures=10)
        dispatcher, sleeps = _build(settings, billing_deps, handler)

        outcome = await dispatcher.dispatch(session, _pm_event(event_payload))

        assert outcome.status == "parked"
        assert handler.calls == 1
        assert sleeps == []


class TestRouting:
    """Resolución de tipo, duplicados y validación."""

    @pytest.mark.asyncio
    async def test_unknown_type_is_ignored(self, session, dispatcher, event_payload):
        event = GatewayEvent.model_validate(event_payload("evt_x", "charge.refunded", {"id": "ch_1"}))

        outcome = await dispatcher.dispatch(session, event)

        assert outcome.status == "ignored"
        record = await _ledger_row(session, "evt_x")
        assert record.status == IdempotencyStatus.PROCESSED.value
        assert record.result == {"ignored": True, "event_type": "charge.refunded"}

    @pytest.mark.asyncio
    async def test_duplicate_delivery_runs_handler_once(self, session, dispatcher, make_account, event_payload):
        await make_account()
        event = _pm_event(event_payload)

        first = await dispatcher.dispatch(session, event)
        second = await dispatcher.dispatch(session, event)

        assert first.status == "processed"
        assert second.status == "duplicate"
        assert second.duplicate is True
        assert second.result == first.result
        count = (await session.execute(select(func.count(PaymentMethod.id)))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_invalid_payload_rejected_before_claim(self, session, dispatcher, event_payload):
        event = GatewayEvent.model_validate(event_payload("evt_bad", "customer.subscription.created", {}))

        with pytest.raises(ValidationError):
            await dispatcher.dispatch(session, event)

        rows = (await session.execute(select(func.count(IdempotencyRecord.id)))).scalar_one()
        assert rows == 0


class TestReplay:
    """Replay manual de eventos estacionados."""

    @pytest.mark.asyncio
    async def test_replay_reprocesses_parked_event(self, session, billing_settings, billing_deps, event_payload):
        handler = FlakyHandler(failures=10)
        dispatcher, _ = _build(billing_settings, billing_deps, handler)
        await dispatcher.dispatch(session, _pm_event(event_payload))

        parked = await list_parked_events(session, dispatcher)
        assert [e.event_id for e in parked] == ["evt_pm_1"]

        handler.failures = 0
        outcomes = await replay_parked_event(session, dispatcher, "evt_pm_1")

        assert [o.status for o in outcomes] == ["processed"]
        event = await _event_row(session, "evt_pm_1")
        assert event.status == WebhookEventStatus.ARCHIVED.value
        record = await _ledger_row(session, "evt_pm_1")
        assert record.status == IdempotencyStatus.PROCESSED.value
        assert record.lease_version == 2

    @pytest.mark.asyncio
    async def test_replay_of_processed_event_is_rejected(self, session, billing_settings, billing_deps, event_payload):
        dispatcher, _ = _build(billing_settings, billing_deps, FlakyHandler(failures=0))
        await dispatcher.dispatch(session, _pm_event(event_payload))

        with pytest.raises(EventNotReplayable):
            await replay_parked_event(session, dispatcher, "evt_pm_1")

    @pytest.mark.asyncio
    async def test_replay_of_unknown_event_is_rejected(self, session, dispatcher):
        with pytest.raises(EventNotReplayable):
            await replay_parked_event(session, dispatcher, "evt_nope")
