# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/adapters/transfer_adapters.py

Adaptadores de rail de pago sobre un proveedor de transferencias opaco.

Cada rail valida los campos de destino que necesita, arma la solicitud
y normaliza la respuesta a TransferResult:
    {success, reference, provider, status} | {success: False, error}

El protocolo concreto del proveedor NO vive aquí; TransferProvider es la
frontera (stub por defecto, HttpTransferProvider con httpx si hay URL).

La Idempotency-Key es estable por payout (payout-<id>): un reintento
tras un timeout ambiguo reusa la clave y el proveedor deduplica.

Autor: Naturinex Billing
Fecha: 2026-09-17
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional, Protocol

import httpx

from app.shared.config.settings_payouts import PayoutSettings
from app.shared.security.payment_details_codec import PaymentDetailsCodec, PaymentDetailsError
from ..enums import PayoutRail
from ..errors import ProviderTransferError
from ..models import Affiliate, Payout

logger = logging.getLogger(__name__)


# ============================================================================
# CONTRATO CON EL PROVEEDOR
# ============================================================================

@dataclass(frozen=True)
class TransferRequest:
    rail: str
    amount: Decimal
    currency: str
    destination: dict[str, Any]
    description: str
    idempotency_key: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransferReceipt:
    reference: str
    status: Optional[str] = None


@dataclass(frozen=True)
class TransferResult:
    success: bool
    reference: Optional[str] = None
    provider: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {"success": True, "reference": self.reference, "provider": self.provider, "status": self.status}


class TransferProvider(Protocol):
    async def transfer(self, request: TransferRequest) -> TransferReceipt: ...


_STUB_PREFIXES = {
    PayoutRail.BANK_TRANSFER.value: "ACH",
    PayoutRail.PAYPAL.value: "PAYPAL",
    PayoutRail.STRIPE.value: "tr_",
    PayoutRail.WIRE_TRANSFER.value: "WIRE",
}


class StubTransferProvider:
    """Proveedor simulado: no mueve dinero, devuelve referencias con el prefijo del rail."""

    async def transfer(self, request: TransferRequest) -> TransferReceipt:
        prefix = _STUB_PREFIXES.get(request.rail, "TRF")
        reference = f"{prefix}{uuid.uuid4().hex[:16]}"
        logger.warning(
            f"⚠️ Transfer stub – NO se desembolsa realmente rail={request.rail} "
            f"amount={request.amount} {request.currency} ref={reference}"
        )
        return TransferReceipt(reference=reference)


class HttpTransferProvider:
    """
    Cliente REST del proveedor de transferencias.

    POST /transfers con Idempotency-Key; espera {"id": ..., "status": ...}.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout, connect=5.0),
            headers={"Authorization": f"Bearer {api_key}"},
        )

    async def transfer(self, request: TransferRequest) -> TransferReceipt:
        body = {
            "rail": request.rail,
            "amount": str(request.amount),
            "currency": request.currency,
            "destination": request.destination,
            "description": request.description,
            "metadata": request.metadata,
        }
        try:
            response = await self._client.post(
                "/transfers",
                json=body,
                headers={"Idempotency-Key": request.idempotency_key},
            )
        except httpx.HTTPError as e:
            raise ProviderTransferError(f"Transfer request failed: {e}") from e
        if response.status_code >= 400:
            raise ProviderTransferError(f"Transfer rejected: HTTP {response.status_code}")
        data = response.json()
        reference = data.get("id") or data.get("reference")
        if not reference:
            raise ProviderTransferError("Transfer response without reference")
        return TransferReceipt(reference=str(reference), status=data.get("status"))

    async def aclose(self) -> None:
        await self._client.aclose()


def build_transfer_provider(settings: PayoutSettings) -> TransferProvider:
    if settings.transfer_provider_url and settings.transfer_provider_api_key:
        return HttpTransferProvider(
            settings.transfer_provider_url,
            settings.transfer_provider_api_key.get_secret_value(),
            timeout=settings.transfer_timeout_seconds,
        )
    return StubTransferProvider()


# ============================================================================
# RAILS
# ============================================================================

class RailAdapter:
    """Base: valida campos requeridos y normaliza la respuesta del proveedor."""

    rail: PayoutRail
    label: str
    provider_name: str
    default_status: str
    required_fields: tuple[str, ...] = ()

    def destination(self, details: Mapping[str, Any]) -> dict[str, Any]:
        return {name: details[name] for name in self.required_fields}

    def missing_fields(self, details: Mapping[str, Any]) -> list[str]:
        return [name for name in self.required_fields if not details.get(name)]

    async def disburse(
        self,
        provider: TransferProvider,
        *,
        payout: Payout,
        details: Mapping[str, Any],
        timeout: float,
    ) -> TransferResult:
        missing = self.missing_fields(details)
        if missing:
            return TransferResult(
                success=False,
                error=f"{self.label} failed: missing {', '.join(missing)}",
            )

        request = TransferRequest(
            rail=self.rail.value,
            amount=Decimal(payout.net_amount),
            currency=payout.currency,
            destination=self.destination(details),
            description=f"Affiliate payout #{payout.id}",
            idempotency_key=f"payout-{payout.id}",
            metadata={"payout_id": payout.id, "affiliate_id": payout.affiliate_id, "attempt": payout.retry_count},
        )
        try:
            receipt = await asyncio.wait_for(provider.transfer(request), timeout=timeout)
        except ProviderTransferError as e:
            return TransferResult(success=False, error=f"{self.label} failed: {e}")
        except TimeoutError:
            return TransferResult(success=False, error=f"{self.label} failed: timed out after {timeout:.0f}s")

        return TransferResult(
            success=True,
            reference=receipt.reference,
            provider=self.provider_name,
            status=receipt.status or self.default_status,
        )


class BankTransferAdapter(RailAdapter):
    rail = PayoutRail.BANK_TRANSFER
    label = "Bank transfer"
    provider_name = "bank_ach"
    default_status = "pending"
    required_fields = ("account_number", "routing_number", "account_holder_name")


class PaypalAdapter(RailAdapter):
    rail = PayoutRail.PAYPAL
    label = "PayPal payout"
    provider_name = "paypal"
    default_status = "pending"
    required_fields = ("paypal_email",)


class StripeConnectAdapter(RailAdapter):
    rail = PayoutRail.STRIPE
    label = "Stripe transfer"
    provider_name = "stripe"
    default_status = "completed"
    required_fields = ("stripe_account_id",)


class WireTransferAdapter(RailAdapter):
    rail = PayoutRail.WIRE_TRANSFER
    label = "Wire transfer"
    provider_name = "wire_transfer"
    default_status = "processing"
    required_fields = ("iban", "swift_code", "beneficiary_name")


RAIL_ADAPTERS: dict[str, RailAdapter] = {
    adapter.rail.value: adapter
    for adapter in (BankTransferAdapter(), PaypalAdapter(), StripeConnectAdapter(), WireTransferAdapter())
}


class TransferRouter:
    """
    Selecciona el adaptador por payment_method y descifra el destino.

    Args:
        provider: TransferProvider compartido por todos los rails
        codec: PaymentDetailsCodec para descifrar datos del afiliado
        timeout: Tope por llamada al proveedor (segundos)
    """

    def __init__(self, provider: TransferProvider, codec: PaymentDetailsCodec, *, timeout: float = 30.0) -> None:
        self.provider = provider
        self.codec = codec
        self.timeout = timeout

    async def disburse(self, affiliate: Affiliate, payout: Payout) -> TransferResult:
        adapter = RAIL_ADAPTERS.get(payout.payment_method)
        if adapter is None:
            return TransferResult(success=False, error=f"Unsupported payment method: {payout.payment_method}")
        try:
            details = self.codec.decrypt(affiliate.encrypted_payment_details or "")
        except PaymentDetailsError as e:
            return TransferResult(success=False, error=f"Invalid payment details: {e}")

        logger.info(f"💸 Despachando payout={payout.id} affiliate={affiliate.id} rail={adapter.rail.value}")
        return await adapter.disburse(self.provider, payout=payout, details=details, timeout=self.timeout)


__all__ = [
    "TransferRequest",
    "TransferReceipt",
    "TransferResult",
    "TransferProvider",
    "StubTransferProvider",
    "HttpTransferProvider",
    "build_transfer_provider",
    "RailAdapter",
    "BankTransferAdapter",
    "PaypalAdapter",
    "StripeConnectAdapter",
    "WireTransferAdapter",
    "RAIL_ADAPTERS",
    "TransferRouter",
]

# Fin del archivo backend/app/modules/affiliates/adapters/transfer_adapters.py
