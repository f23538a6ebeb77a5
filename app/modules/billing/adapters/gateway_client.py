# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/adapters/gateway_client.py

Cliente del gateway de pagos para las dos operaciones que el motor
invoca activamente:
- cancelar una suscripción (dunning agotado)
- pedir el cobro de una factura (job de reintentos de dunning)

El resto del protocolo del gateway queda fuera; el motor solo consume
su stream de webhooks.

Nota:
- LoggingGatewayClient es el stub por defecto (NO llama al gateway).
- HttpGatewayClient usa httpx con timeouts explícitos.

Autor: Naturinex Billing
Fecha: 2026-09-10
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from app.shared.config.settings_billing import BillingSettings

logger = logging.getLogger(__name__)


class GatewayClientError(Exception):
    """Fallo al invocar el API del gateway."""


class GatewayClient(Protocol):
    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]: ...

    async def pay_invoice(self, invoice_id: str) -> dict[str, Any]: ...


# ============================================================================
# STUB
# ============================================================================

class LoggingGatewayClient:
    """Stub seguro: registra la intención y devuelve una respuesta normalizada."""

    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        logger.warning(f"⚠️ Gateway stub – NO se cancela realmente subscription={subscription_id}")
        return {"id": subscription_id, "status": "canceled", "_stub": True}

    async def pay_invoice(self, invoice_id: str) -> dict[str, Any]:
        logger.warning(f"⚠️ Gateway stub – NO se cobra realmente invoice={invoice_id}")
        return {"id": invoice_id, "status": "open", "_stub": True}


# ============================================================================
# HTTP
# ============================================================================

class HttpGatewayClient:
    """
    Cliente REST mínimo del gateway.

    Args:
        base_url: URL base del API (p.ej. https://api.gateway.example/v1)
        api_key: Clave secreta (Bearer)
        timeout: Timeout total por request en segundos
        client: AsyncClient inyectable (tests)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout, connect=5.0),
            headers={"Authorization": f"Bearer {api_key}"},
        )

    async def _request(self, method: str, path: str) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path)
        except httpx.HTTPError as e:
            raise GatewayClientError(f"{method} {path}: {e}") from e
        if response.status_code >= 400:
            raise GatewayClientError(f"{method} {path}: HTTP {response.status_code}")
        return response.json() if response.content else {}

    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/subscriptions/{subscription_id}")

    async def pay_invoice(self, invoice_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/invoices/{invoice_id}/pay")

    async def aclose(self) -> None:
        await self._client.aclose()


def build_gateway_client(settings: BillingSettings) -> GatewayClient:
    """Elige HTTP si hay URL y clave configuradas; si no, el stub."""
    if settings.gateway_api_base_url and settings.gateway_api_key:
        return HttpGatewayClient(
            settings.gateway_api_base_url,
            settings.gateway_api_key.get_secret_value(),
            timeout=settings.gateway_timeout_seconds,
        )
    return LoggingGatewayClient()


__all__ = [
    "GatewayClient",
    "GatewayClientError",
    "LoggingGatewayClient",
    "HttpGatewayClient",
    "build_gateway_client",
]

# Fin del archivo backend/app/modules/billing/adapters/gateway_client.py
