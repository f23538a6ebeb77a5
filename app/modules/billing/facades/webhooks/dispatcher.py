# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/webhooks/dispatcher.py

Dispatcher de eventos verificados hacia su handler registrado.

Flujo por entrega:
1. Claim del par (event_id, dedup_key) en el ledger (commit inmediato).
   Si no se obtiene → duplicate, sin invocar handlers.
2. Archivo del evento (WebhookEvent) si aún no existe.
3. Tipo desconocido → se registra como processed sin efectos (ignored).
4. Handler con reintentos: timeout por intento, backoff exponencial
   base × 2^(n-1), tope de intentos y presupuesto total de tiempo.
   Cada intento corre en su propia transacción; un fallo hace rollback.
5. Éxito: received → processed (UPDATE condicional), auditoría, archivo
   y commit en la misma transacción; luego se encolan notificaciones.
6. Agotado o error no reintentable: el evento queda estacionado
   (needs_attention) para replay manual.

Autor: Naturinex Billing
Fecha: 2026-09-11
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_billing import BillingSettings
from app.shared.integrations.notification_queue import NotificationQueue
from app.shared.utils.datetime_helpers import from_unix
from ...enums import WebhookEventStatus, WebhookEventType
from ...errors import NonRetryableHandlerError
from ...metrics import HANDLER_DURATION_SECONDS, HANDLER_RETRIES_TOTAL, WEBHOOKS_OUTCOME_TOTAL
from ...repositories import IdempotencyRecordRepository, WebhookAuditRepository, WebhookEventRepository
from ...schemas import GatewayEvent
from ...services import Claim, IdempotencyService
from .context import BillingDependencies, HandlerContext
from .handlers import HANDLER_REGISTRY, HandlerSpec

logger = logging.getLogger(__name__)

Outcome = Literal["processed", "duplicate", "ignored", "parked"]


@dataclass
class DispatchOutcome:
    status: Outcome
    event_id: str
    dedup_key: str
    result: Optional[dict[str, Any]] = None
    attempts: int = 0
    error: Optional[str] = None
    notifications: list = field(default_factory=list)

    @property
    def duplicate(self) -> bool:
        return self.status == "duplicate"

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "event_id": self.event_id,
            "duplicate": self.duplicate,
            "result": self.result,
            "attempts": self.attempts,
            "error": self.error,
        }


class EventDispatcher:
    """
    Enruta eventos al handler de su tipo con reintentos acotados.

    Args:
        settings: BillingSettings (reintentos, timeouts, lease)
        deps: Repositorios/servicios que reciben los handlers
        notifications: Cola fire-and-forget (None = solo se loguean)
        registry: Registro tipo → handler (inyectable en tests)
        sleep: Función de espera del backoff (inyectable en tests)
    """

    def __init__(
        self,
        settings: BillingSettings,
        deps: BillingDependencies,
        *,
        notifications: Optional[NotificationQueue] = None,
        registry: Optional[dict[WebhookEventType, HandlerSpec]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.deps = deps
        self.notifications = notifications
        self.registry = registry if registry is not None else HANDLER_REGISTRY
        self._sleep = sleep
        self.event_repo = WebhookEventRepository()
        self.idempotency = IdempotencyService(
            IdempotencyRecordRepository(),
            WebhookAuditRepository(),
            self.event_repo,
            lease_seconds=settings.idempotency_lease_seconds,
        )

    # ---------------------------------------------------------
    # Resolución y validación (antes de tocar estado)
    # ---------------------------------------------------------
    def resolve(self, event: GatewayEvent) -> tuple[Optional[WebhookEventType], Optional[HandlerSpec]]:
        event_type = WebhookEventType.resolve(event.type)
        if event_type is None:
            return None, None
        return event_type, self.registry.get(event_type)

    @staticmethod
    def validate_payload(event: GatewayEvent, spec: HandlerSpec) -> BaseModel:
        """Raises pydantic.ValidationError si data.object no tiene la forma esperada."""
        return spec.payload_model.model_validate(event.data.object)

    # ---------------------------------------------------------
    # Dispatch
    # ---------------------------------------------------------
    async def dispatch(
        self,
        session: AsyncSession,
        event: GatewayEvent,
        *,
        dedup_key: Optional[str] = None,
        raw_payload: Optional[dict[str, Any]] = None,
        signature_header: Optional[str] = None,
    ) -> DispatchOutcome:
        dedup_key = dedup_key or event.id
        event_type, spec = self.resolve(event)
        payload = self.validate_payload(event, spec) if spec is not None else None

        claim = await self.idempotency.claim(
            session,
            event_id=event.id,
            dedup_key=dedup_key,
            event_type=event.type,
        )
        if not claim.claimed:
            logger.info(f"Webhook duplicado event={event.id} key={dedup_key} estado={claim.previous_status}")
            WEBHOOKS_OUTCOME_TOTAL.labels("duplicate").inc()
            return DispatchOutcome("duplicate", event.id, dedup_key, result=claim.result)

        await self.idempotency.ensure_event(
            session,
            event_id=event.id,
            event_type=event.type,
            occurred_at=from_unix(event.created),
            raw_payload=raw_payload if raw_payload is not None else event.model_dump(mode="json"),
            signature_header=signature_header,
        )

        if spec is None:
            return await self._ignore(session, claim)

        return await self._run_with_retries(session, claim, event, event_type, spec, payload)

    async def _ignore(self, session: AsyncSession, claim: Claim) -> DispatchOutcome:
        logger.info(f"Tipo de evento sin handler, se ignora event={claim.event_id} type={claim.event_type}")
        result = {"ignored": True, "event_type": claim.event_type}
        ok = await self.idempotency.mark_processed(session, claim, attempts=0, result=result)
        if not ok:
            await session.rollback()
            WEBHOOKS_OUTCOME_TOTAL.labels("duplicate").inc()
            return DispatchOutcome("duplicate", claim.event_id, claim.dedup_key)
        await self.event_repo.set_status(session, claim.event_id, WebhookEventStatus.ARCHIVED, attempts=0)
        await session.commit()
        WEBHOOKS_OUTCOME_TOTAL.labels("ignored").inc()
        return DispatchOutcome("ignored", claim.event_id, claim.dedup_key, result=result)

    async def _run_with_retries(
        self,
        session: AsyncSession,
        claim: Claim,
        event: GatewayEvent,
        event_type: WebhookEventType,
        spec: HandlerSpec,
        payload: BaseModel,
    ) -> DispatchOutcome:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.webhook_processing_timeout_seconds
        max_attempts = max(1, self.settings.webhook_handler_max_attempts)
        base_delay = self.settings.webhook_retry_base_delay_seconds

        attempt = 0
        while True:
            attempt += 1
            ctx = HandlerContext(
                session=session,
                event=event,
                event_type=event_type,
                settings=self.settings,
                deps=self.deps,
            )
            remaining = deadline - loop.time()
            timeout = max(0.001, min(self.settings.webhook_handler_timeout_seconds, remaining))
            started = time.perf_counter()
            try:
                result = await asyncio.wait_for(spec.handler(ctx, payload), timeout=timeout)
                HANDLER_DURATION_SECONDS.labels(event_type.value).observe(time.perf_counter() - started)

                ok = await self.idempotency.mark_processed(session, claim, attempts=attempt, result=result)
                if not ok:
                    # Otro worker reclamó el registro; sus efectos son los que cuentan
                    await session.rollback()
                    logger.warning(f"Lease perdido event={claim.event_id} key={claim.dedup_key}")
                    WEBHOOKS_OUTCOME_TOTAL.labels("duplicate").inc()
                    return DispatchOutcome("duplicate", claim.event_id, claim.dedup_key, attempts=attempt)
                await self.event_repo.set_status(
                    session, claim.event_id, WebhookEventStatus.ARCHIVED, attempts=attempt
                )
                await session.commit()
            except NonRetryableHandlerError as e:
                await session.rollback()
                logger.warning(f"Error no reintentable event={claim.event_id} type={event_type.value}: {e}")
                return await self._park(session, claim, attempts=attempt, error=f"{type(e).__name__}: {e}")
            except Exception as e:
                await session.rollback()
                HANDLER_DURATION_SECONDS.labels(event_type.value).observe(time.perf_counter() - started)
                error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
                if attempt >= max_attempts:
                    logger.error(f"Handler agotó {attempt} intentos event={claim.event_id}: {error}")
                    return await self._park(session, claim, attempts=attempt, error=error)
                delay = base_delay * (2 ** (attempt - 1))
                if loop.time() + delay >= deadline:
                    logger.error(f"Presupuesto de reintentos agotado event={claim.event_id} intento={attempt}: {error}")
                    return await self._park(session, claim, attempts=attempt, error=error)
                HANDLER_RETRIES_TOTAL.labels(event_type.value).inc()
                logger.warning(
                    f"Handler falló event={claim.event_id} type={event_type.value} "
                    f"intento={attempt}/{max_attempts}, reintento en {delay:.2f}s: {error}"
                )
                await self._sleep(delay)
                continue

            self._enqueue(ctx)
            WEBHOOKS_OUTCOME_TOTAL.labels("processed").inc()
            logger.info(f"Webhook procesado event={claim.event_id} type={event_type.value} intentos={attempt}")
            return DispatchOutcome(
                "processed",
                claim.event_id,
                claim.dedup_key,
                result=result,
                attempts=attempt,
                notifications=list(ctx.notifications),
            )

    async def _park(self, session: AsyncSession, claim: Claim, *, attempts: int, error: str) -> DispatchOutcome:
        """Deja el evento en needs_attention. Si no se puede persistir, propaga."""
        try:
            await self.idempotency.mark_failed(session, claim, attempts=attempts, error=error)
            await self.event_repo.set_status(
                session,
                claim.event_id,
                WebhookEventStatus.NEEDS_ATTENTION,
                attempts=attempts,
                last_error=error[:2000],
            )
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            logger.exception(f"No se pudo estacionar event={claim.event_id}")
            raise
        WEBHOOKS_OUTCOME_TOTAL.labels("parked").inc()
        logger.warning(f"Webhook estacionado para replay event={claim.event_id} key={claim.dedup_key}")
        return DispatchOutcome("parked", claim.event_id, claim.dedup_key, attempts=attempts, error=error)

    def _enqueue(self, ctx: HandlerContext) -> None:
        if not ctx.notifications:
            return
        if self.notifications is None:
            for message in ctx.notifications:
                logger.info(f"[NOTIFY] sin cola: template={message.template} → {message.recipient_id}")
            return
        self.notifications.enqueue_many(ctx.notifications)


__all__ = ["DispatchOutcome", "EventDispatcher"]

# Fin del archivo backend/app/modules/billing/facades/webhooks/dispatcher.py
