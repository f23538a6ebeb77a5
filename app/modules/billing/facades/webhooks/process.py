# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/webhooks/process.py

Punto de entrada de ingesta: verify → parse → ledger → dispatch.

- process_webhook(): usado por la ruta HTTP. Los errores de firma y de
  payload se propagan (4xx) porque aún no se tocó estado.
- replay_parked_event(): re-despacha un evento estacionado desde su
  payload archivado a través del mismo ledger.
- list_parked_events(): eventos en needs_attention para operadores.

Autor: Naturinex Billing
Fecha: 2026-09-12
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config import get_settings
from ...enums import WebhookEventStatus
from ...errors import EventNotReplayable, SignatureError, WebhookPayloadError
from ...metrics import SIGNATURE_FAILURES_TOTAL, WEBHOOKS_OUTCOME_TOTAL, WEBHOOKS_RECEIVED_TOTAL
from ...models import WebhookEvent
from ...schemas import GatewayEvent
from ...services.webhooks import should_skip_verification, verify
from .dispatcher import DispatchOutcome, EventDispatcher

logger = logging.getLogger(__name__)


def parse_event(raw_body: bytes) -> tuple[GatewayEvent, dict[str, Any]]:
    """
    Parsea el cuerpo JSON del evento.

    Raises:
        WebhookPayloadError: Cuerpo no JSON, no objeto o sin id/type
    """
    try:
        data = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise WebhookPayloadError(f"Webhook body is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise WebhookPayloadError("Webhook body must be a JSON object")
    try:
        return GatewayEvent.model_validate(data), data
    except ValidationError as e:
        raise WebhookPayloadError(f"Invalid event envelope: {e.error_count()} error(s)") from e


async def process_webhook(
    session: AsyncSession,
    dispatcher: EventDispatcher,
    raw_body: bytes,
    signature_header: Optional[str],
    *,
    dedup_key: Optional[str] = None,
    now: Optional[float] = None,
) -> DispatchOutcome:
    """
    Procesa una entrega del gateway.

    Args:
        session: Sesión async (el dispatcher controla commit/rollback)
        dispatcher: EventDispatcher construido en el lifespan
        raw_body: Cuerpo exacto recibido
        signature_header: Header Signature
        dedup_key: Clave de deduplicación; por defecto el id del evento
        now: Epoch actual (tests)

    Returns:
        DispatchOutcome (processed / duplicate / ignored / parked)

    Raises:
        SignatureError: Firma ausente, vencida o inválida
        WebhookPayloadError: Cuerpo o data.object inválidos
    """
    WEBHOOKS_RECEIVED_TOTAL.inc()
    settings = dispatcher.settings

    if not should_skip_verification(settings.allow_insecure_webhooks, is_dev=get_settings().is_dev):
        try:
            verify(
                raw_body,
                signature_header,
                settings.webhook_signing_secret or "",
                tolerance_seconds=settings.signature_tolerance_seconds,
                now=now,
            )
        except SignatureError as e:
            SIGNATURE_FAILURES_TOTAL.labels(e.reason).inc()
            WEBHOOKS_OUTCOME_TOTAL.labels("rejected").inc()
            raise

    event, raw_payload = parse_event(raw_body)
    try:
        return await dispatcher.dispatch(
            session,
            event,
            dedup_key=dedup_key,
            raw_payload=raw_payload,
            signature_header=signature_header,
        )
    except ValidationError as e:
        WEBHOOKS_OUTCOME_TOTAL.labels("rejected").inc()
        logger.warning(f"Payload inválido event={event.id} type={event.type}: {e.error_count()} error(es)")
        raise WebhookPayloadError(f"Event {event.id} data.object does not match {event.type}") from e


async def replay_parked_event(
    session: AsyncSession,
    dispatcher: EventDispatcher,
    event_id: str,
) -> list[DispatchOutcome]:
    """
    Re-despacha un evento en needs_attention.

    Cada dedup_key fallida del evento se reclama de nuevo en el ledger;
    si no hay ninguna registrada se usa el id del evento.

    Raises:
        EventNotReplayable: El evento no existe o no está estacionado
    """
    stored = await dispatcher.event_repo.get_by_event_id(session, event_id)
    if stored is None or stored.status != WebhookEventStatus.NEEDS_ATTENTION.value:
        raise EventNotReplayable(f"Event {event_id} is not parked")

    event = GatewayEvent.model_validate(stored.raw_payload)
    signature_header = stored.signature_header
    raw_payload = dict(stored.raw_payload)

    failed = await dispatcher.idempotency.record_repo.list_failed_for_event(session, event_id)
    dedup_keys = [r.dedup_key for r in failed] or [event_id]

    logger.info(f"Replay manual event={event_id} claves={dedup_keys}")
    outcomes = []
    for key in dedup_keys:
        outcomes.append(
            await dispatcher.dispatch(
                session,
                event,
                dedup_key=key,
                raw_payload=raw_payload,
                signature_header=signature_header,
            )
        )
    return outcomes


async def list_parked_events(session: AsyncSession, dispatcher: EventDispatcher, limit: int = 100) -> Sequence[WebhookEvent]:
    return await dispatcher.event_repo.list_by_status(session, WebhookEventStatus.NEEDS_ATTENTION, limit=limit)


__all__ = [
    "parse_event",
    "process_webhook",
    "replay_parked_event",
    "list_parked_events",
]

# Fin del archivo backend/app/modules/billing/facades/webhooks/process.py
