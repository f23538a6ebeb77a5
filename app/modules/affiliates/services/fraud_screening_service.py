# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/services/fraud_screening_service.py

Screening de fraude previo a un payout.

Score aditivo en [0, 100]; passed = score < umbral (50 por defecto).

    Conversión clicks→conversiones > 15%              +30
    Patrón de clicks (7 días): IP > 70%, UA > 80%,
      o una hora del día > 50%                        +25
    Destino de pago duplicado con otro afiliado       +20
    Velocidad: día máximo > 5× promedio y > $100
      (mínimo 5 comisiones en 30 días)                +15
    Geolocalización inconsistente                     +10

Cualquier excepción durante el scoring → score 100, passed=False
(fail closed: nunca se autoriza dinero ante la duda).

Autor: Naturinex Billing
Fecha: 2026-09-16
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.security.payment_details_codec import PaymentDetailsCodec, PaymentDetailsError
from app.shared.utils.datetime_helpers import ensure_utc, utcnow
from ..metrics import FRAUD_BLOCKS_TOTAL
from ..models import Affiliate, FraudAlert, ReferralClick
from ..repositories import (
    AffiliateRepository,
    CommissionRepository,
    FraudAlertRepository,
    ReferralClickRepository,
)

logger = logging.getLogger(__name__)

# ----- Pesos y razones -----
CONVERSION_RATE_LIMIT = 0.15
CLICK_IP_SHARE_LIMIT = 0.70
CLICK_UA_SHARE_LIMIT = 0.80
CLICK_HOUR_SHARE_LIMIT = 0.50
CLICK_WINDOW_DAYS = 7
VELOCITY_WINDOW_DAYS = 30
VELOCITY_MIN_COMMISSIONS = 5
VELOCITY_SPIKE_FACTOR = 5
VELOCITY_FLOOR = Decimal("100")

REASON_CONVERSION = "Abnormally high conversion rate"
REASON_CLICKS = "Suspicious click patterns detected"
REASON_DUPLICATE = "Duplicate payment details found"
REASON_VELOCITY = "Unusual commission earning velocity"
REASON_GEO = "Inconsistent geographic patterns"
REASON_SYSTEM_ERROR = "Fraud check system error"

WEIGHTS = {
    REASON_CONVERSION: 30,
    REASON_CLICKS: 25,
    REASON_DUPLICATE: 20,
    REASON_VELOCITY: 15,
    REASON_GEO: 10,
}


@dataclass
class FraudCheckResult:
    affiliate_id: int
    risk_score: int
    reasons: list[str] = field(default_factory=list)
    passed: bool = True
    checked_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict[str, Any]:
        return {
            "affiliate_id": self.affiliate_id,
            "risk_score": self.risk_score,
            "reasons": list(self.reasons),
            "passed": self.passed,
            "checked_at": self.checked_at.isoformat(),
        }


class GeoConsistencyChecker(Protocol):
    async def is_inconsistent(self, session: AsyncSession, affiliate: Affiliate) -> bool: ...


class NoGeoProvider:
    """Sin proveedor de geolocalización conectado: siempre consistente."""

    async def is_inconsistent(self, session: AsyncSession, affiliate: Affiliate) -> bool:
        return False


# ---------------------------------------------------------------------------
# Reglas puras (sin BD)
# ---------------------------------------------------------------------------
def conversion_rate_anomalous(clicks: int, conversions: int) -> bool:
    """
    Examples:
        >>> conversion_rate_anomalous(100, 16)
        True
        >>> conversion_rate_anomalous(100, 15)
        False
        >>> conversion_rate_anomalous(0, 3)
        False
    """
    if clicks <= 0:
        return False
    return conversions / clicks > CONVERSION_RATE_LIMIT


def click_pattern_anomalous(clicks: Sequence[ReferralClick]) -> bool:
    """IP, user-agent u hora del día concentran una fracción sospechosa de clicks."""
    total = len(clicks)
    if total == 0:
        return False

    def top_share(values: list[Any]) -> float:
        counted = Counter(v for v in values if v)
        if not counted:
            return 0.0
        return counted.most_common(1)[0][1] / total

    if top_share([c.visitor_ip for c in clicks]) > CLICK_IP_SHARE_LIMIT:
        return True
    if top_share([c.user_agent for c in clicks]) > CLICK_UA_SHARE_LIMIT:
        return True
    hours = Counter(ensure_utc(c.clicked_at).hour for c in clicks)
    return hours.most_common(1)[0][1] / total > CLICK_HOUR_SHARE_LIMIT


def velocity_anomalous(daily_totals: dict[str, Decimal], commission_count: int) -> bool:
    """
    Examples:
        >>> velocity_anomalous({"d1": Decimal("10"), "d2": Decimal("10"), "d3": Decimal("500")}, 6)
        False
        >>> days = {f"d{i}": Decimal("10") for i in range(10)}
        >>> days["d10"] = Decimal("600")
        >>> velocity_anomalous(days, 11)
        True
    """
    if commission_count < VELOCITY_MIN_COMMISSIONS or not daily_totals:
        return False
    values = list(daily_totals.values())
    average = sum(values, Decimal("0")) / len(values)
    peak = max(values)
    return peak > average * VELOCITY_SPIKE_FACTOR and peak > VELOCITY_FLOOR


class FraudScreeningService:
    """
    Calcula el FraudCheckResult de un afiliado y registra alertas.

    Args:
        affiliate_repo, click_repo, commission_repo, alert_repo: repositorios
        codec: PaymentDetailsCodec compartido (misma huella en todo el servicio)
        threshold: Score a partir del cual falla
        geo: Verificador de geolocalización (stub por defecto)
    """

    def __init__(
        self,
        affiliate_repo: AffiliateRepository,
        click_repo: ReferralClickRepository,
        commission_repo: CommissionRepository,
        alert_repo: FraudAlertRepository,
        codec: PaymentDetailsCodec,
        *,
        threshold: int = 50,
        geo: Optional[GeoConsistencyChecker] = None,
    ) -> None:
        self.affiliate_repo = affiliate_repo
        self.click_repo = click_repo
        self.commission_repo = commission_repo
        self.alert_repo = alert_repo
        self.codec = codec
        self.threshold = threshold
        self.geo = geo or NoGeoProvider()

    async def score(
        self,
        session: AsyncSession,
        affiliate: Affiliate,
        *,
        now: Optional[datetime] = None,
    ) -> FraudCheckResult:
        now = now or utcnow()
        try:
            reasons = await self._collect_reasons(session, affiliate, now)
        except Exception as e:
            logger.exception(f"🚨 Error en screening de fraude affiliate={affiliate.id}: {type(e).__name__}")
            return FraudCheckResult(
                affiliate_id=affiliate.id,
                risk_score=100,
                reasons=[REASON_SYSTEM_ERROR],
                passed=False,
                checked_at=now,
            )

        risk_score = max(0, min(100, sum(WEIGHTS[r] for r in reasons)))
        result = FraudCheckResult(
            affiliate_id=affiliate.id,
            risk_score=risk_score,
            reasons=reasons,
            passed=risk_score < self.threshold,
            checked_at=now,
        )
        if not result.passed:
            logger.warning(
                f"🚫 Screening bloqueó payout affiliate={affiliate.id} score={risk_score} reasons={reasons}"
            )
        return result

    async def record_alert(self, session: AsyncSession, result: FraudCheckResult) -> FraudAlert:
        """Persiste la alerta de un resultado fallido (no suspende al afiliado)."""
        FRAUD_BLOCKS_TOTAL.inc()
        return await self.alert_repo.create(
            session,
            affiliate_id=result.affiliate_id,
            fraud_type="payout_fraud",
            risk_score=result.risk_score,
            confidence_score=Decimal("0.80"),
            risk_level="high",
            detection_method="automated",
            evidence={"reasons": list(result.reasons), "risk_score": result.risk_score},
            action_taken="block_payout",
        )

    # ---------------------------------------------------------
    # Reglas con acceso a datos
    # ---------------------------------------------------------
    async def _collect_reasons(self, session: AsyncSession, affiliate: Affiliate, now: datetime) -> list[str]:
        reasons: list[str] = []

        if conversion_rate_anomalous(affiliate.total_clicks or 0, affiliate.total_conversions or 0):
            reasons.append(REASON_CONVERSION)

        clicks = await self.click_repo.list_since(session, affiliate.id, now - timedelta(days=CLICK_WINDOW_DAYS))
        if click_pattern_anomalous(clicks):
            reasons.append(REASON_CLICKS)

        if await self._has_duplicate_destination(session, affiliate):
            reasons.append(REASON_DUPLICATE)

        if await self._velocity_spike(session, affiliate, now):
            reasons.append(REASON_VELOCITY)

        if await self.geo.is_inconsistent(session, affiliate):
            reasons.append(REASON_GEO)

        return reasons

    async def _has_duplicate_destination(self, session: AsyncSession, affiliate: Affiliate) -> bool:
        if not affiliate.encrypted_payment_details:
            return False
        fingerprint = self.codec.fingerprint_encrypted(affiliate.encrypted_payment_details)
        if fingerprint is None:
            return False

        if await self.affiliate_repo.count_sharing_fingerprint(session, fingerprint, affiliate.id) > 0:
            return True

        for other in await self.affiliate_repo.list_unfingerprinted_with_details(session, affiliate.id):
            try:
                if self.codec.fingerprint_encrypted(other.encrypted_payment_details) == fingerprint:
                    return True
            except PaymentDetailsError:
                logger.warning(f"Datos de pago ilegibles affiliate={other.id}; se omite en comparación")
        return False

    async def _velocity_spike(self, session: AsyncSession, affiliate: Affiliate, now: datetime) -> bool:
        since = now - timedelta(days=VELOCITY_WINDOW_DAYS)
        commissions = await self.commission_repo.list_confirmed_since(session, affiliate.id, since)
        daily: dict[str, Decimal] = {}
        for commission in commissions:
            day = ensure_utc(commission.transaction_date).date().isoformat()
            daily[day] = daily.get(day, Decimal("0")) + Decimal(commission.amount)
        return velocity_anomalous(daily, len(commissions))


__all__ = [
    "FraudCheckResult",
    "FraudScreeningService",
    "GeoConsistencyChecker",
    "NoGeoProvider",
    "REASON_CONVERSION",
    "REASON_CLICKS",
    "REASON_DUPLICATE",
    "REASON_VELOCITY",
    "REASON_GEO",
    "REASON_SYSTEM_ERROR",
    "conversion_rate_anomalous",
    "click_pattern_anomalous",
    "velocity_anomalous",
]

# Fin del archivo backend/app/modules/affiliates/services/fraud_screening_service.py
