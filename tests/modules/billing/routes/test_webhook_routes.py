# -*- coding: utf-8 -*-
"""
Tests HTTP de ingesta de webhooks y de administración del ledger.

Cubre:
- Flujo completo invoice.payment_failed: 200, un intento de dunning con
  reintento a 3 días; re-entrega con la misma clave no crea otro intento
- 401 por firma alterada, vencida o ausente
- 400 por cuerpo no JSON o data.object inválido
- 202 cuando el evento queda estacionado
- Listado de estacionados y replay (Bearer APP_SERVICE_TOKEN)

Autor: Naturinex Billing
Fecha: 2026-09-22
"""

import json
import time
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.modules.billing.models import DunningAttempt
from app.shared.utils.datetime_helpers import ensure_utc, utcnow

WEBHOOK_URL = "/billing/webhooks"

FAILED_INVOICE = {"id": "in_1", "customer": "cus_1", "subscription": "sub_1", "amount_due": 999}


def _body(event_payload, event_id="evt_1", event_type="invoice.payment_failed", obj=None) -> bytes:
    return json.dumps(event_payload(event_id, event_type, obj if obj is not None else FAILED_INVOICE)).encode("utf-8")


async def _post(client, body: bytes, signature: str | None, **headers):
    if signature is not None:
        headers["Signature"] = signature
    headers.setdefault("Content-Type", "application/json")
    return await client.post(WEBHOOK_URL, content=body, headers=headers)


async def _attempt_count(session) -> int:
    return (await session.execute(select(func.count(DunningAttempt.id)))).scalar_one()


class TestPaymentFailedFlow:
    """Entrega firmada de invoice.payment_failed de punta a punta."""

    @pytest.mark.asyncio
    async def test_first_delivery_records_attempt(self, async_client, session, make_account, event_payload, signer):
        await make_account()
        body = _body(event_payload)

        response = await _post(async_client, body, signer(body))

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "processed"
        assert data["event_id"] == "evt_1"
        assert data["duplicate"] is False
        assert data["result"]["attempt_number"] == 1

        result = await session.execute(select(DunningAttempt).execution_options(populate_existing=True))
        attempt = result.scalar_one()
        assert attempt.attempt_number == 1
        expected = utcnow() + timedelta(days=3)
        assert abs((ensure_utc(attempt.next_retry_at) - expected).total_seconds()) < 60

    @pytest.mark.asyncio
    async def test_redelivery_is_duplicate(self, async_client, session, make_account, event_payload, signer):
        await make_account()
        body = _body(event_payload)

        first = await _post(async_client, body, signer(body))
        second = await _post(async_client, body, signer(body), **{"Idempotency-Key": "evt_1"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["duplicate"] is True
        assert second.json()["status"] == "duplicate"
        assert await _attempt_count(session) == 1

    @pytest.mark.asyncio
    async def test_unknown_type_is_acknowledged(self, async_client, event_payload, signer):
        body = _body(event_payload, "evt_x", "charge.refunded", {"id": "ch_1"})
        response = await _post(async_client, body, signer(body))
        assert response.status_code == 200
        assert response.json()["status"] == "ignored"


class TestSignatureRejection:
    """Ningún estado cambia si la firma no es válida."""

    @pytest.mark.asyncio
    async def test_tampered_body(self, async_client, session, make_account, event_payload, signer):
        await make_account()
        body = _body(event_payload)
        signature = signer(body)
        tampered = body.replace(b"999", b"998")

        response = await _post(async_client, tampered, signature)

        assert response.status_code == 401
        assert response.json()["detail"] == "signature_invalid"
        assert await _attempt_count(session) == 0

    @pytest.mark.asyncio
    async def test_stale_timestamp(self, async_client, event_payload, signer):
        body = _body(event_payload)
        response = await _post(async_client, body, signer(body, timestamp=int(time.time()) - 301))
        assert response.status_code == 401
        assert response.json()["detail"] == "signature_stale"

    @pytest.mark.asyncio
    async def test_missing_header(self, async_client, event_payload):
        response = await _post(async_client, _body(event_payload), None)
        assert response.status_code == 401
        assert response.json()["detail"] == "signature_malformed"


class TestPayloadRejection:
    @pytest.mark.asyncio
    async def test_body_not_json(self, async_client, signer):
        body = b"not-json"
        response = await _post(async_client, body, signer(body))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_data_object_shape_mismatch(self, async_client, event_payload, signer):
        body = _body(event_payload, "evt_bad", "customer.subscription.created", {"status": "active"})
        response = await _post(async_client, body, signer(body))
        assert response.status_code == 400


class TestParkedEvents:
    """Eventos estacionados: 202 al gateway, listado y replay."""

    @pytest.mark.asyncio
    async def test_unmapped_customer_is_queued_for_replay(self, async_client, event_payload, signer):
        body = _body(event_payload)
        response = await _post(async_client, body, signer(body))
        assert response.status_code == 202
        assert response.json()["status"] == "queued_for_replay"

    @pytest.mark.asyncio
    async def test_admin_endpoints_require_token(self, async_client):
        response = await async_client.get(f"{WEBHOOK_URL}/parked")
        assert response.status_code == 401

        response = await async_client.get(f"{WEBHOOK_URL}/parked", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_and_replay(self, async_client, service_token, make_account, event_payload, signer):
        body = _body(event_payload)
        await _post(async_client, body, signer(body))

        listed = await async_client.get(f"{WEBHOOK_URL}/parked", headers=service_token)
        assert listed.status_code == 200
        assert listed.json()["count"] == 1
        assert listed.json()["items"][0]["event_id"] == "evt_1"
        assert listed.json()["items"][0]["status"] == "needs_attention"

        await make_account()
        replay = await async_client.post(f"{WEBHOOK_URL}/evt_1/replay", headers=service_token)
        assert replay.status_code == 200
        assert [o["status"] for o in replay.json()["outcomes"]] == ["processed"]

        listed = await async_client.get(f"{WEBHOOK_URL}/parked", headers=service_token)
        assert listed.json()["count"] == 0

    @pytest.mark.asyncio
    async def test_replay_unknown_event_is_404(self, async_client, service_token):
        response = await async_client.post(f"{WEBHOOK_URL}/evt_none/replay", headers=service_token)
        assert response.status_code == 404
