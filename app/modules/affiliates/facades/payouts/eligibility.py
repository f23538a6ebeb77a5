# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/facades/payouts/eligibility.py

Compuerta de elegibilidad de un afiliado para payout.

Se evalúa dentro de la misma transacción que crea el Payout, con la
fila del afiliado y sus comisiones pendientes ya bloqueadas; así el
pendiente que decide el umbral es el mismo que se vincula.

Orden: estado → rail → umbral → fallos recientes → fraude. El screening
(el paso más caro y el único con efectos: alerta) solo corre si las
demás condiciones se cumplen.

Autor: Naturinex Billing
Fecha: 2026-09-18
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_payouts import PayoutSettings
from app.shared.utils.money import to_money
from ...enums import AffiliateStatus
from ...models import Affiliate
from ...repositories import PayoutRepository
from ...services import FraudCheckResult, FraudScreeningService


@dataclass
class EligibilityResult:
    affiliate_id: int
    eligible: bool
    pending_total: Decimal
    threshold: Decimal
    reasons: list[str] = field(default_factory=list)
    fraud: Optional[FraudCheckResult] = None

    @property
    def fraud_blocked(self) -> bool:
        return self.fraud is not None and not self.fraud.passed

    def as_dict(self) -> dict[str, Any]:
        return {
            "affiliate_id": self.affiliate_id,
            "eligible": self.eligible,
            "pending_total": str(self.pending_total),
            "threshold": str(self.threshold),
            "reasons": list(self.reasons),
            "fraud": self.fraud.as_dict() if self.fraud else None,
        }


def effective_threshold(affiliate: Affiliate, settings: PayoutSettings) -> Decimal:
    """max(umbral propio, umbral global)."""
    own = to_money(affiliate.minimum_payout_threshold) if affiliate.minimum_payout_threshold is not None else None
    global_min = to_money(settings.minimum_payout_threshold)
    return max(own, global_min) if own is not None else global_min


async def evaluate_eligibility(
    session: AsyncSession,
    affiliate: Affiliate,
    pending_total: Decimal,
    *,
    settings: PayoutSettings,
    payout_repo: PayoutRepository,
    fraud: FraudScreeningService,
    now: datetime,
) -> EligibilityResult:
    threshold = effective_threshold(affiliate, settings)
    result = EligibilityResult(
        affiliate_id=affiliate.id,
        eligible=False,
        pending_total=pending_total,
        threshold=threshold,
    )

    if affiliate.status != AffiliateStatus.APPROVED.value:
        result.reasons.append(f"Affiliate status is {affiliate.status}")
    if affiliate.payment_method not in settings.supported_rails:
        result.reasons.append(f"Unsupported payment method: {affiliate.payment_method}")
    if pending_total < threshold:
        result.reasons.append(f"Pending amount {pending_total} below threshold {threshold}")

    since = now - timedelta(days=settings.failed_payout_lookback_days)
    failures = await payout_repo.count_recent_failures(session, affiliate.id, since)
    if failures >= settings.max_payout_retries:
        result.reasons.append(
            f"Too many failed payouts ({failures}) in last {settings.failed_payout_lookback_days} days"
        )
    elif await payout_repo.has_exhausted_retries(session, affiliate.id, settings.max_payout_retries):
        result.reasons.append("Payout retries exhausted; operator review required")

    if result.reasons:
        return result

    result.fraud = await fraud.score(session, affiliate, now=now)
    if not result.fraud.passed:
        result.reasons.append(f"Fraud check failed (score {result.fraud.risk_score})")
        return result

    result.eligible = True
    return result


__all__ = ["EligibilityResult", "effective_threshold", "evaluate_eligibility"]

# Fin del archivo backend/app/modules/affiliates/facades/payouts/eligibility.py
