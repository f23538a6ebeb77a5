# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/facades/payouts/orchestrator.py

Orquestador de payouts a afiliados.

Flujo por afiliado (dos transacciones):
1. Creación: bloquea afiliado y comisiones pendientes, evalúa
   elegibilidad, calcula montos, crea el Payout en processing y vincula
   las comisiones con un UPDATE condicional. Commit ANTES de llamar al
   proveedor: una comisión vinculada nunca entra en otro payout.
2. Desembolso: rail adapter → proveedor. Éxito: completed, comisiones
   paid, total_paid += neto. Fallo: failed con razón; las comisiones
   quedan vinculadas sin pagar para que retry_failed_payout reutilice
   la misma vinculación. Notificación persistida en la misma
   transacción y encolada después del commit.

Tras un éxito del proveedor el comprobante (referencia, proveedor) se
confirma en su propio commit antes de la contabilidad. Si la
contabilidad falla, el payout queda needs_reconciliation con la
referencia; reconcile_payout la completa sin volver a transferir.

La corrida programada procesa afiliados en secuencia y siempre produce
un resumen (procesados, fallidos, monto total, errores).

Autor: Naturinex Billing
Fecha: 2026-09-18
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_payouts import PayoutSettings
from app.shared.integrations.notification_queue import NotificationQueue
from app.shared.integrations.notification_sender import NotificationMessage
from app.shared.security.payment_details_codec import PaymentDetailsCodec
from app.shared.utils.datetime_helpers import utcnow
from app.shared.utils.money import ZERO, to_money
from ...adapters import TransferProvider, TransferResult, TransferRouter, build_transfer_provider
from ...enums import NotificationKind, PayoutStatus
from ...errors import (
    AffiliateNotFound,
    EligibilityError,
    PayoutLinkConflict,
    PayoutNotFound,
    PayoutNotRetryable,
    PayoutStateConflict,
)
from ...metrics import PAYOUT_AMOUNT_DISBURSED_TOTAL, PAYOUT_RUN_DURATION_SECONDS, PAYOUTS_TOTAL
from ...models import Payout
from ...repositories import (
    AffiliateNotificationRepository,
    AffiliateRepository,
    CommissionRepository,
    FraudAlertRepository,
    PayoutRepository,
    ReferralClickRepository,
)
from ...services import FraudCheckResult, FraudScreeningService, GeoConsistencyChecker, amounts_from_settings, sum_amounts
from .eligibility import evaluate_eligibility

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["completed", "failed", "needs_reconciliation"]


# ============================================================================
# DEPENDENCIAS
# ============================================================================

@dataclass
class PayoutDependencies:
    settings: PayoutSettings
    affiliate_repo: AffiliateRepository
    commission_repo: CommissionRepository
    payout_repo: PayoutRepository
    notification_repo: AffiliateNotificationRepository
    fraud: FraudScreeningService
    transfers: TransferRouter

    @classmethod
    def build(
        cls,
        settings: PayoutSettings,
        codec: PaymentDetailsCodec,
        *,
        provider: Optional[TransferProvider] = None,
        geo: Optional[GeoConsistencyChecker] = None,
    ) -> "PayoutDependencies":
        affiliate_repo = AffiliateRepository()
        commission_repo = CommissionRepository()
        fraud = FraudScreeningService(
            affiliate_repo,
            ReferralClickRepository(),
            commission_repo,
            FraudAlertRepository(),
            codec,
            threshold=settings.fraud_risk_threshold,
            geo=geo,
        )
        transfers = TransferRouter(
            provider or build_transfer_provider(settings),
            codec,
            timeout=settings.transfer_timeout_seconds,
        )
        return cls(
            settings=settings,
            affiliate_repo=affiliate_repo,
            commission_repo=commission_repo,
            payout_repo=PayoutRepository(),
            notification_repo=AffiliateNotificationRepository(),
            fraud=fraud,
            transfers=transfers,
        )


# ============================================================================
# RESULTADOS
# ============================================================================

@dataclass
class PayoutOutcome:
    affiliate_id: int
    payout_id: int
    status: OutcomeStatus
    amount: Decimal
    reference: Optional[str] = None
    provider: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == "completed"

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "affiliate_id": self.affiliate_id,
            "payout_id": self.payout_id,
            "status": self.status,
            "amount": str(self.amount),
            "reference": self.reference,
            "provider": self.provider,
            "error": self.error,
        }


@dataclass
class BatchSummary:
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    needs_reconciliation: int = 0
    total_amount: Decimal = ZERO
    errors: list[dict[str, Any]] = field(default_factory=list)
    payouts: list[dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "failed": self.failed,
            "skipped": self.skipped,
            "needs_reconciliation": self.needs_reconciliation,
            "total_amount": str(self.total_amount),
            "errors": list(self.errors),
            "payouts": list(self.payouts),
        }


def _method_label(method: Optional[str]) -> str:
    return (method or "unknown").replace("_", " ").title()


# ============================================================================
# ORQUESTADOR
# ============================================================================

class PayoutOrchestrator:
    """
    Args:
        deps: Repositorios, screening y router de transferencias
        notifications: Cola fire-and-forget (None = solo se loguean)
    """

    def __init__(self, deps: PayoutDependencies, *, notifications: Optional[NotificationQueue] = None) -> None:
        self.deps = deps
        self.settings = deps.settings
        self.notifications = notifications

    # ---------------------------------------------------------
    # Corrida programada
    # ---------------------------------------------------------
    async def run_scheduled_payouts(self, session: AsyncSession, *, now: Optional[datetime] = None) -> BatchSummary:
        now = now or utcnow()
        started = time.perf_counter()
        summary = BatchSummary()

        candidate_ids = await self.deps.affiliate_repo.list_ids_with_pending_commissions(session)
        await session.rollback()
        logger.info(f"🗓️ Corrida de payouts: {len(candidate_ids)} afiliados con comisiones pendientes")

        for affiliate_id in candidate_ids:
            try:
                payout_id = await self._create_payout(session, affiliate_id, bypass_eligibility=False, now=now)
            except EligibilityError as e:
                summary.skipped += 1
                PAYOUTS_TOTAL.labels("skipped").inc()
                logger.info(f"Afiliado {affiliate_id} no elegible: {e.reasons or str(e)}")
                continue
            except PayoutLinkConflict as e:
                summary.errors.append({"affiliate_id": affiliate_id, "error": str(e)})
                logger.warning(str(e))
                continue
            except Exception as e:
                await session.rollback()
                logger.exception(f"Error creando payout affiliate={affiliate_id}")
                summary.errors.append({"affiliate_id": affiliate_id, "error": f"{type(e).__name__}: {e}"})
                continue

            try:
                outcome = await self._disburse_and_record(session, payout_id, now=now)
            except Exception as e:
                await session.rollback()
                logger.exception(f"Error registrando payout={payout_id} affiliate={affiliate_id}")
                summary.failed += 1
                summary.errors.append(
                    {"affiliate_id": affiliate_id, "payout_id": payout_id, "error": f"{type(e).__name__}: {e}"}
                )
                continue

            summary.payouts.append(outcome.as_dict())
            if outcome.success:
                summary.processed += 1
                summary.total_amount = to_money(summary.total_amount + outcome.amount)
            elif outcome.status == PayoutStatus.NEEDS_RECONCILIATION.value:
                summary.needs_reconciliation += 1
                summary.total_amount = to_money(summary.total_amount + outcome.amount)
                summary.errors.append(
                    {"affiliate_id": affiliate_id, "payout_id": payout_id, "error": outcome.error}
                )
            else:
                summary.failed += 1
                summary.errors.append(
                    {"affiliate_id": affiliate_id, "payout_id": payout_id, "error": outcome.error}
                )

        PAYOUT_RUN_DURATION_SECONDS.observe(time.perf_counter() - started)
        logger.info(
            f"✅ Corrida de payouts terminada: procesados={summary.processed} fallidos={summary.failed} "
            f"omitidos={summary.skipped} a_reconciliar={summary.needs_reconciliation} total={summary.total_amount}"
        )
        return summary

    # ---------------------------------------------------------
    # Payout manual
    # ---------------------------------------------------------
    async def process_manual_payout(
        self,
        session: AsyncSession,
        affiliate_id: int,
        *,
        bypass_eligibility: bool = False,
        now: Optional[datetime] = None,
    ) -> PayoutOutcome:
        """
        Payout de un solo afiliado (operador).

        Raises:
            AffiliateNotFound: "Affiliate not found"
            EligibilityError: "Affiliate not eligible for payout" / "No pending commissions found"
            PayoutLinkConflict: otra corrida vinculó las comisiones primero
        """
        now = now or utcnow()
        if bypass_eligibility:
            logger.warning(f"⚠️ Payout manual SIN chequeo de elegibilidad affiliate={affiliate_id}")
        payout_id = await self._create_payout(session, affiliate_id, bypass_eligibility=bypass_eligibility, now=now)
        return await self._disburse_and_record(session, payout_id, now=now)

    # ---------------------------------------------------------
    # Reintento
    # ---------------------------------------------------------
    async def retry_failed_payout(
        self,
        session: AsyncSession,
        payout_id: int,
        *,
        now: Optional[datetime] = None,
    ) -> PayoutOutcome:
        """
        Reintenta un payout failed reutilizando su vinculación de comisiones.

        Raises:
            PayoutNotFound: el payout no existe
            PayoutNotRetryable: no está failed o agotó max_payout_retries
        """
        now = now or utcnow()
        payout = await self.deps.payout_repo.get(session, payout_id)
        if payout is None:
            await session.rollback()
            raise PayoutNotFound(payout_id)

        claimed = await self.deps.payout_repo.claim_retry(session, payout_id, self.settings.max_payout_retries)
        if not claimed:
            message = (
                f"Payout {payout_id} is not retryable "
                f"(status={payout.status}, retry_count={payout.retry_count}, "
                f"max={self.settings.max_payout_retries})"
            )
            await session.rollback()
            raise PayoutNotRetryable(message)
        await session.commit()
        logger.info(f"🔁 Reintentando payout={payout_id} intento={payout.retry_count}")
        return await self._disburse_and_record(session, payout_id, now=now)

    # ---------------------------------------------------------
    # Reconciliación (transferencia hecha, contabilidad pendiente)
    # ---------------------------------------------------------
    async def reconcile_payout(
        self,
        session: AsyncSession,
        payout_id: int,
        *,
        now: Optional[datetime] = None,
    ) -> PayoutOutcome:
        """
        Completa la contabilidad de un payout needs_reconciliation usando la
        referencia ya guardada. No llama al proveedor.

        Raises:
            PayoutNotFound: el payout no existe
            PayoutStateConflict: el payout no está needs_reconciliation
        """
        now = now or utcnow()
        payout = await self.deps.payout_repo.get(session, payout_id)
        if payout is None:
            await session.rollback()
            raise PayoutNotFound(payout_id)
        if payout.status != PayoutStatus.NEEDS_RECONCILIATION.value:
            current = payout.status
            await session.rollback()
            raise PayoutStateConflict(payout_id, PayoutStatus.NEEDS_RECONCILIATION.value, current)

        receipt = TransferResult(
            success=True,
            reference=payout.payment_reference,
            provider=payout.payment_provider,
            status=payout.provider_status,
        )
        method = payout.payment_method
        try:
            outcome = await self._record_success(
                session,
                payout_id=payout_id,
                affiliate_id=payout.affiliate_id,
                method=method,
                transfer=receipt,
                net_amount=to_money(payout.net_amount),
                now=now,
                from_status=PayoutStatus.NEEDS_RECONCILIATION,
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        logger.info(f"🧾 Payout reconciliado id={payout_id} ref={outcome.reference}")
        self._notify(outcome.affiliate_id, outcome, method=method)
        PAYOUTS_TOTAL.labels("reconciled").inc()
        return outcome

    # ---------------------------------------------------------
    # Consulta
    # ---------------------------------------------------------
    async def get_payout(self, session: AsyncSession, payout_id: int) -> Payout:
        """Estado, referencia, razón de fallo y reintentos de un payout."""
        payout = await self.deps.payout_repo.get(session, payout_id)
        if payout is None:
            raise PayoutNotFound(payout_id)
        return payout

    # ---------------------------------------------------------
    # Screening bajo demanda (sin alerta)
    # ---------------------------------------------------------
    async def check_fraud(self, session: AsyncSession, affiliate_id: int) -> FraudCheckResult:
        affiliate = await self.deps.affiliate_repo.get(session, affiliate_id)
        if affiliate is None:
            raise AffiliateNotFound(affiliate_id)
        result = await self.deps.fraud.score(session, affiliate)
        await session.rollback()
        return result

    # ---------------------------------------------------------
    # Pasos internos
    # ---------------------------------------------------------
    async def _create_payout(
        self,
        session: AsyncSession,
        affiliate_id: int,
        *,
        bypass_eligibility: bool,
        now: datetime,
    ) -> int:
        deps = self.deps
        affiliate = await deps.affiliate_repo.get_for_update(session, affiliate_id)
        if affiliate is None:
            await session.rollback()
            raise AffiliateNotFound(affiliate_id)

        commissions = await deps.commission_repo.list_unlinked_confirmed(session, affiliate_id, for_update=True)
        pending_total = sum_amounts(c.amount for c in commissions)

        if not bypass_eligibility:
            eligibility = await evaluate_eligibility(
                session,
                affiliate,
                pending_total,
                settings=self.settings,
                payout_repo=deps.payout_repo,
                fraud=deps.fraud,
                now=now,
            )
            if not eligibility.eligible:
                if eligibility.fraud_blocked:
                    await deps.fraud.record_alert(session, eligibility.fraud)
                    await session.commit()
                else:
                    await session.rollback()
                raise EligibilityError("Affiliate not eligible for payout", eligibility.reasons)

        if not commissions:
            await session.rollback()
            raise EligibilityError("No pending commissions found")

        amounts = amounts_from_settings(pending_total, self.settings)
        payout = await deps.payout_repo.create(
            session,
            affiliate_id=affiliate_id,
            gross_amount=amounts.gross_amount,
            processing_fee=amounts.processing_fee,
            tax_withheld=amounts.tax_withheld,
            net_amount=amounts.net_amount,
            currency=self.settings.currency,
            commission_count=len(commissions),
            period_start=min(c.transaction_date for c in commissions),
            period_end=max(c.transaction_date for c in commissions),
            payment_method=affiliate.payment_method or "unknown",
            status=PayoutStatus.PROCESSING.value,
            retry_count=0,
            requested_at=now,
        )
        payout_id = payout.id

        commission_ids = [c.id for c in commissions]
        linked = await deps.commission_repo.link_to_payout(session, commission_ids, payout_id)
        if linked != len(commission_ids):
            await session.rollback()
            raise PayoutLinkConflict(affiliate_id, expected=len(commission_ids), linked=linked)

        affiliate.total_pending = ZERO
        await session.commit()
        logger.info(
            f"Payout creado id={payout_id} affiliate={affiliate_id} bruto={amounts.gross_amount} "
            f"fee={amounts.processing_fee} neto={amounts.net_amount} comisiones={len(commission_ids)}"
        )
        return payout_id

    async def _disburse_and_record(self, session: AsyncSession, payout_id: int, *, now: datetime) -> PayoutOutcome:
        deps = self.deps
        payout = await deps.payout_repo.get(session, payout_id)
        if payout is None:
            raise PayoutNotFound(payout_id)
        affiliate = await deps.affiliate_repo.get(session, payout.affiliate_id)
        if affiliate is None:
            raise AffiliateNotFound(payout.affiliate_id)

        affiliate_id = affiliate.id
        net_amount = to_money(payout.net_amount)
        method = payout.payment_method

        try:
            transfer = await deps.transfers.disburse(affiliate, payout)
        except Exception as e:
            logger.exception(f"Error inesperado del rail payout={payout_id}")
            transfer = TransferResult(success=False, error=f"Unexpected transfer error: {type(e).__name__}")

        if transfer.success:
            outcome = await self._settle_success(
                session,
                payout_id=payout_id,
                affiliate_id=affiliate_id,
                method=method,
                transfer=transfer,
                net_amount=net_amount,
                now=now,
            )
        else:
            outcome = await self._record_failure(session, payout, transfer, net_amount=net_amount, now=now)
            await session.commit()

        if outcome.status != PayoutStatus.NEEDS_RECONCILIATION.value:
            self._notify(affiliate_id, outcome, method=method)
        PAYOUTS_TOTAL.labels(outcome.status).inc()
        if transfer.success:
            PAYOUT_AMOUNT_DISBURSED_TOTAL.inc(float(net_amount))
        return outcome

    async def _settle_success(
        self,
        session: AsyncSession,
        *,
        payout_id: int,
        affiliate_id: int,
        method: str,
        transfer: TransferResult,
        net_amount: Decimal,
        now: datetime,
    ) -> PayoutOutcome:
        """
        El dinero ya salió: primero se confirma el comprobante, luego la
        contabilidad. Un fallo de contabilidad deja needs_reconciliation.
        """
        deps = self.deps
        try:
            await deps.payout_repo.record_receipt(
                session,
                payout_id,
                reference=transfer.reference,
                provider=transfer.provider,
                provider_status=transfer.status,
            )
            await session.commit()

            outcome = await self._record_success(
                session,
                payout_id=payout_id,
                affiliate_id=affiliate_id,
                method=method,
                transfer=transfer,
                net_amount=net_amount,
                now=now,
            )
            await session.commit()
            return outcome
        except Exception as e:
            await session.rollback()
            reason = f"Transfer {transfer.reference} succeeded but bookkeeping failed: {type(e).__name__}: {e}"
            logger.exception(f"❗ Payout {payout_id} requiere reconciliación (ref={transfer.reference})")

        marked = await deps.payout_repo.mark_needs_reconciliation(
            session,
            payout_id,
            reference=transfer.reference,
            provider=transfer.provider,
            provider_status=transfer.status,
            reason=reason[:2000],
        )
        await session.commit()
        if not marked:
            logger.error(f"Payout {payout_id} no quedó en needs_reconciliation: el estado cambió")
        return PayoutOutcome(
            affiliate_id=affiliate_id,
            payout_id=payout_id,
            status="needs_reconciliation",
            amount=net_amount,
            reference=transfer.reference,
            provider=transfer.provider,
            error=reason,
        )

    async def _record_success(
        self,
        session: AsyncSession,
        *,
        payout_id: int,
        affiliate_id: int,
        method: str,
        transfer: TransferResult,
        net_amount: Decimal,
        now: datetime,
        from_status: PayoutStatus = PayoutStatus.PROCESSING,
    ) -> PayoutOutcome:
        deps = self.deps

        completed = await deps.payout_repo.mark_completed(
            session,
            payout_id,
            reference=transfer.reference,
            provider=transfer.provider,
            provider_status=transfer.status,
            now=now,
            from_status=from_status,
        )
        if not completed:
            raise PayoutStateConflict(payout_id, from_status.value)
        paid = await deps.commission_repo.mark_paid(session, payout_id, now)
        await deps.affiliate_repo.add_to_total_paid(session, affiliate_id, net_amount)
        await deps.notification_repo.add(
            session,
            affiliate_id,
            kind=NotificationKind.PAYOUT_SUCCESS.value,
            title="Payout Processed Successfully",
            message=(
                f"Your payout of ${net_amount:.2f} has been processed via "
                f"{_method_label(method)}. Reference: {transfer.reference}"
            ),
            priority="high",
            data={"payout_id": payout_id, "amount": str(net_amount), "reference": transfer.reference},
        )
        logger.info(
            f"✅ Payout completado id={payout_id} affiliate={affiliate_id} neto={net_amount} "
            f"ref={transfer.reference} comisiones_pagadas={paid}"
        )
        return PayoutOutcome(
            affiliate_id=affiliate_id,
            payout_id=payout_id,
            status="completed",
            amount=net_amount,
            reference=transfer.reference,
            provider=transfer.provider,
        )

    async def _record_failure(
        self,
        session: AsyncSession,
        payout: Payout,
        transfer: TransferResult,
        *,
        net_amount: Decimal,
        now: datetime,
    ) -> PayoutOutcome:
        deps = self.deps
        payout_id = payout.id
        affiliate_id = payout.affiliate_id
        reason = transfer.error or "Unknown transfer error"

        await deps.payout_repo.mark_failed(session, payout_id, reason=reason[:2000], now=now)
        await deps.notification_repo.add(
            session,
            affiliate_id,
            kind=NotificationKind.PAYOUT_FAILED.value,
            title="Payout Processing Failed",
            message=(
                f"Your payout of ${net_amount:.2f} failed to process. Error: {reason}. "
                "Please update your payment information."
            ),
            priority="urgent",
            data={"payout_id": payout_id, "amount": str(net_amount), "error": reason},
        )
        logger.error(f"❌ Payout fallido id={payout_id} affiliate={affiliate_id}: {reason}")
        return PayoutOutcome(
            affiliate_id=affiliate_id,
            payout_id=payout_id,
            status="failed",
            amount=net_amount,
            error=reason,
        )

    def _notify(self, affiliate_id: int, outcome: PayoutOutcome, *, method: str) -> None:
        template = (
            NotificationKind.PAYOUT_SUCCESS.value if outcome.success else NotificationKind.PAYOUT_FAILED.value
        )
        message = NotificationMessage(
            recipient_id=str(affiliate_id),
            template=template,
            context={
                "payout_id": outcome.payout_id,
                "amount": str(outcome.amount),
                "payment_method": method,
                "reference": outcome.reference,
                "error": outcome.error,
            },
        )
        if self.notifications is None:
            logger.info(f"[NOTIFY] sin cola: template={template} → affiliate={affiliate_id}")
            return
        self.notifications.enqueue(message)


__all__ = [
    "PayoutDependencies",
    "PayoutOutcome",
    "BatchSummary",
    "PayoutOrchestrator",
]

# Fin del archivo backend/app/modules/affiliates/facades/payouts/orchestrator.py
