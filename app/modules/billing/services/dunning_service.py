# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/services/dunning_service.py

Motor de dunning (reintentos de cobro) por suscripción.

Máquina de estados:
    no_attempt → attempt(n) → {attempt(n+1) | resolved | exhausted}

- record_failure(): cada invoice.payment_failed persiste un
  DunningAttempt con attempt_number = intentos previos dentro de la
  ventana de gracia + 1. Si attempt_number >= max_attempts el ciclo se
  agota: la suscripción se cancela en el gateway y la cuenta pasa a
  canceled. Si no, se agenda next_retry_at y la cuenta pasa a past_due.
- resolve(): invoice.payment_succeeded borra todos los intentos de la
  suscripción; el siguiente fallo vuelve a contar desde cero.
- request_due_retries(): el job horario pide al gateway cobrar las
  facturas cuyo next_retry_at venció; el webhook resultante mueve la
  máquina de estados.

El servicio no hace commit: lo decide el facade que lo invoca.

Autor: Naturinex Billing
Fecha: 2026-09-10
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_billing import BillingSettings
from app.shared.utils.datetime_helpers import utcnow
from app.shared.utils.money import cents_to_money
from ..adapters import GatewayClient, GatewayClientError
from ..enums import SubscriptionStatus
from ..errors import HandlerTransientError
from ..metrics import DUNNING_ATTEMPTS_TOTAL, DUNNING_EXHAUSTED_TOTAL
from ..models import BillingAccount, DunningAttempt
from ..repositories import DunningAttemptRepository, PaymentMethodRepository
from ..schemas import InvoiceObject
from .entitlement_cache import EntitlementCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DunningOutcome:
    attempt_number: int
    max_attempts: int
    exhausted: bool
    next_retry_at: Optional[datetime]
    card_declined: bool
    flagged_payment_methods: int = 0

    def as_dict(self) -> dict:
        return {
            "attempt_number": self.attempt_number,
            "max_attempts": self.max_attempts,
            "max_attempts_reached": self.exhausted,
            "next_retry_at": self.next_retry_at.isoformat() if self.next_retry_at else None,
            "card_declined": self.card_declined,
        }


class DunningService:
    def __init__(
        self,
        attempt_repo: DunningAttemptRepository,
        payment_method_repo: PaymentMethodRepository,
        gateway: GatewayClient,
        settings: BillingSettings,
        entitlements: Optional[EntitlementCache] = None,
    ) -> None:
        self.attempt_repo = attempt_repo
        self.payment_method_repo = payment_method_repo
        self.gateway = gateway
        self.settings = settings
        self.entitlements = entitlements

    # ---------------------------------------------------------
    # Fallo de cobro
    # ---------------------------------------------------------
    async def record_failure(
        self,
        session: AsyncSession,
        account: BillingAccount,
        subscription_id: str,
        invoice: InvoiceObject,
        *,
        now: Optional[datetime] = None,
    ) -> DunningOutcome:
        now = now or utcnow()
        max_attempts = self.settings.dunning_max_attempts
        grace_start = now - timedelta(days=self.settings.dunning_grace_period_days)

        prior = await self.attempt_repo.count_since(session, subscription_id, grace_start)
        attempt_number = prior + 1
        exhausted = attempt_number >= max_attempts
        next_retry_at = None if exhausted else now + timedelta(days=self.settings.retry_interval_days(attempt_number))

        failure = invoice.last_finalization_error
        await self.attempt_repo.create(
            session,
            billing_account_id=account.id,
            owner_id=account.owner_id,
            subscription_id=subscription_id,
            invoice_id=invoice.id,
            attempt_number=attempt_number,
            failure_code=failure.code if failure else None,
            failure_reason=failure.message if failure else None,
            amount=cents_to_money(invoice.amount_due),
            currency=invoice.currency,
            next_retry_at=next_retry_at,
            created_at=now,
        )
        DUNNING_ATTEMPTS_TOTAL.inc()

        if exhausted:
            await self._exhaust(session, account, subscription_id)
        else:
            account.status = SubscriptionStatus.PAST_DUE.value
            logger.info(
                f"Dunning intento {attempt_number}/{max_attempts} sub={subscription_id} "
                f"próximo reintento={next_retry_at.isoformat()}"
            )

        card_declined = bool(failure and failure.is_card_declined)
        flagged = 0
        if card_declined:
            flagged = await self.payment_method_repo.flag_for_replacement(session, account.owner_id)
            logger.info(f"Tarjeta rechazada owner={account.owner_id}: {flagged} método(s) marcados para reemplazo")

        await session.flush()
        return DunningOutcome(
            attempt_number=attempt_number,
            max_attempts=max_attempts,
            exhausted=exhausted,
            next_retry_at=next_retry_at,
            card_declined=card_declined,
            flagged_payment_methods=flagged,
        )

    async def _exhaust(self, session: AsyncSession, account: BillingAccount, subscription_id: str) -> None:
        logger.warning(f"Dunning agotado sub={subscription_id} owner={account.owner_id}: cancelando suscripción")
        account.status = SubscriptionStatus.CANCELED.value
        account.cancel_at_period_end = False
        await session.flush()
        try:
            await self.gateway.cancel_subscription(subscription_id)
        except GatewayClientError as e:
            # Se revierte todo el intento; el dispatcher reintenta
            raise HandlerTransientError(f"Gateway cancel failed for {subscription_id}: {e}") from e
        DUNNING_EXHAUSTED_TOTAL.inc()
        if self.entitlements is not None:
            self.entitlements.invalidate(account.owner_id)

    # ---------------------------------------------------------
    # Cobro exitoso
    # ---------------------------------------------------------
    async def resolve(self, session: AsyncSession, subscription_id: str) -> int:
        """Borra todos los intentos de la suscripción (estado no_attempt)."""
        removed = await self.attempt_repo.delete_for_subscription(session, subscription_id)
        if removed:
            logger.info(f"Dunning resuelto sub={subscription_id}: {removed} intento(s) eliminados")
        return removed

    # ---------------------------------------------------------
    # Job de reintentos
    # ---------------------------------------------------------
    async def request_due_retries(
        self,
        session: AsyncSession,
        *,
        now: Optional[datetime] = None,
        limit: int = 100,
    ) -> dict:
        """
        Pide al gateway cobrar las facturas con reintento vencido.

        Cada intento se marca con UPDATE condicional y commit antes de
        llamar al gateway, así dos instancias del job no piden el mismo
        cobro dos veces.
        """
        now = now or utcnow()
        due: list[DunningAttempt] = list(await self.attempt_repo.list_due_for_retry(session, now, limit))
        requested = 0
        failed = 0
        skipped = 0
        for attempt in due:
            if not attempt.invoice_id:
                skipped += 1
                continue
            won = await self.attempt_repo.mark_retry_requested(session, attempt.id, now)
            await session.commit()
            if not won:
                skipped += 1
                continue
            try:
                await self.gateway.pay_invoice(attempt.invoice_id)
                requested += 1
            except GatewayClientError as e:
                failed += 1
                logger.error(f"Reintento de cobro fallido invoice={attempt.invoice_id} sub={attempt.subscription_id}: {e}")
                await self.attempt_repo.clear_retry_requested(session, attempt.id)
                await session.commit()
        if due:
            logger.info(f"Dunning job: solicitados={requested} fallidos={failed} omitidos={skipped}")
        return {"due": len(due), "requested": requested, "failed": failed, "skipped": skipped}


__all__ = ["DunningOutcome", "DunningService"]

# Fin del archivo backend/app/modules/billing/services/dunning_service.py
