# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/services/webhooks/signature_verification.py

Verificación de firmas de webhooks del gateway de pagos.

Header esperado:
    Signature: t=<unix>,v1=<hex hmac-sha256>[,v1=<hex>...]

La firma se calcula como HMAC-SHA256(secret, "<t>.<raw_body>") y se
compara en tiempo constante (hmac.compare_digest) contra cada v1 del
header. Ninguna ruta de código confía en un evento sin pasar por verify().

IMPORTANTE:
- El bypass inseguro SOLO aplica en desarrollo y NUNCA con PYTHON_ENV=test
  o en producción (ver should_skip_verification).

Autor: Naturinex Billing
Fecha: 2026-09-09
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Optional

from app.modules.billing.errors import InvalidSignature, MalformedSignature, StaleSignature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Signature"
DEFAULT_TOLERANCE_SECONDS = 300


@dataclass(frozen=True)
class VerifiedEvent:
    """Cuerpo crudo cuya autenticidad y frescura ya se comprobaron."""

    raw_body: bytes
    timestamp: int
    signature_header: Optional[str]


# =============================================================================
# HELPERS
# =============================================================================

def compute_signature(raw_body: bytes, timestamp: int, secret: str) -> str:
    """HMAC-SHA256 hex de "<timestamp>.<raw_body>"."""
    signed_payload = f"{timestamp}.".encode("utf-8") + raw_body
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def build_signature_header(raw_body: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """
    Construye un header válido (lo usan tests y herramientas de replay local).

    Examples:
        >>> build_signature_header(b"{}", "whsec", timestamp=1).startswith("t=1,v1=")
        True
    """
    ts = int(time.time()) if timestamp is None else int(timestamp)
    return f"t={ts},v1={compute_signature(raw_body, ts, secret)}"


def parse_signature_header(header: Optional[str]) -> tuple[int, list[str]]:
    """
    Extrae timestamp y firmas v1 del header.

    Raises:
        MalformedSignature: Header vacío, sin t=, t no numérico o sin v1=
    """
    if not header or not header.strip():
        raise MalformedSignature("Signature header missing")

    timestamp: Optional[int] = None
    signatures: list[str] = []
    for part in header.split(","):
        key, sep, value = part.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise MalformedSignature("Signature timestamp is not an integer")
        elif key == "v1" and value:
            signatures.append(value)

    if timestamp is None:
        raise MalformedSignature("Signature header without t=")
    if not signatures:
        raise MalformedSignature("Signature header without v1=")
    return timestamp, signatures


# =============================================================================
# VERIFICACIÓN
# =============================================================================

def verify(
    raw_body: bytes,
    signature_header: Optional[str],
    secret: str,
    *,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> VerifiedEvent:
    """
    Verifica autenticidad y frescura de un webhook.

    Args:
        raw_body: Cuerpo exacto recibido (bytes, sin re-serializar)
        signature_header: Valor del header Signature
        secret: Secreto compartido con el gateway
        tolerance_seconds: Desfase máximo permitido, pasado o futuro
        now: Epoch actual (inyectable en tests)

    Returns:
        VerifiedEvent

    Raises:
        MalformedSignature: Header sin t= o v1=
        StaleSignature: |now - t| > tolerance_seconds
        InvalidSignature: Ningún v1 coincide
    """
    if not secret:
        # Sin secreto no hay forma de autenticar; se trata como firma inválida
        logger.error("Webhook rechazado: WEBHOOK_SIGNING_SECRET no configurado")
        raise InvalidSignature("Webhook signing secret not configured")

    timestamp, signatures = parse_signature_header(signature_header)

    current = time.time() if now is None else now
    skew = abs(int(current) - timestamp)
    if skew > tolerance_seconds:
        logger.warning(
            f"Webhook rechazado: timestamp fuera de tolerancia "
            f"(desfase={skew}s, tolerancia={tolerance_seconds}s)"
        )
        raise StaleSignature(f"Signature timestamp outside tolerance ({skew}s)")

    expected = compute_signature(raw_body, timestamp, secret)
    matched = False
    for candidate in signatures:
        # Se evalúan todas las firmas sin cortocircuito
        matched |= hmac.compare_digest(expected.encode("ascii"), candidate.encode("utf-8", "replace"))

    if not matched:
        logger.warning("Webhook rechazado: ninguna firma v1 coincide")
        raise InvalidSignature("Signature mismatch")

    return VerifiedEvent(raw_body=raw_body, timestamp=timestamp, signature_header=signature_header)


def should_skip_verification(allow_insecure: bool, *, is_dev: bool) -> bool:
    """
    Determina si se permite omitir la verificación.

    REGLAS:
    1. ALLOW_INSECURE_WEBHOOKS debe estar activo
    2. El entorno debe ser desarrollo (test y producción son fail-closed)
    """
    if allow_insecure and not is_dev:
        logger.error("ALLOW_INSECURE_WEBHOOKS ignorado fuera de desarrollo")
        return False
    if allow_insecure:
        logger.warning("⚠️ Verificación de firma OMITIDA (modo desarrollo)")
    return allow_insecure


__all__ = [
    "SIGNATURE_HEADER",
    "DEFAULT_TOLERANCE_SECONDS",
    "VerifiedEvent",
    "compute_signature",
    "build_signature_header",
    "parse_signature_header",
    "verify",
    "should_skip_verification",
]

# Fin del archivo backend/app/modules/billing/services/webhooks/signature_verification.py
