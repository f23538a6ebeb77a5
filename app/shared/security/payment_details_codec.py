# -*- coding: utf-8 -*-
"""
backend/app/shared/security/payment_details_codec.py

Codec único para datos de pago de afiliados (cuentas bancarias, PayPal,
IBAN): cifrado simétrico y huella (fingerprint) para detectar destinos
de pago duplicados.

Cifrado: Fernet (AES-128-CBC + HMAC) con clave derivada por
PBKDF2-HMAC-SHA256 (100 000 iteraciones) a partir de secreto + salt.
Todas las comparaciones de datos de pago pasan por la misma instancia,
así los parámetros criptográficos son idénticos en todo el servicio.

Autor: Naturinex Billing
Fecha: 2026-09-05
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from typing import Any, Mapping, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

# Campos que identifican un destino de pago, en orden de concatenación
FINGERPRINT_FIELDS = ("account_number", "routing_number", "paypal_email", "iban")

_DEV_FALLBACK_SECRET = "naturinex-dev-only-secret"


class PaymentDetailsError(Exception):
    """Error al cifrar/descifrar datos de pago."""


class PaymentDetailsCodec:
    """
    Cifra, descifra y calcula huellas de datos de pago.

    Args:
        secret: Secreto maestro para derivar la clave
        salt: Salt de derivación (único por instalación)
    """

    ENCRYPTED_PREFIX = "ENC:"
    KDF_ITERATIONS = 100_000

    def __init__(self, secret: str, salt: str):
        if not secret:
            raise PaymentDetailsError("Se requiere un secreto para el codec de datos de pago")
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode("utf-8"),
            iterations=self.KDF_ITERATIONS,
        )
        key = base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))
        self._fernet = Fernet(key)

    @classmethod
    def from_settings(cls, settings: Any) -> "PaymentDetailsCodec":
        """
        Construye el codec desde PayoutSettings.

        Sin clave configurada (solo dev/test; producción la exige en
        _security_and_payments_checks) se usa un secreto fijo de desarrollo.
        """
        secret: Optional[str] = settings.payment_details_encryption_key
        if not secret:
            logger.warning("⚠️ PAYMENT_DETAILS_ENCRYPTION_KEY no configurada - usando secreto de desarrollo")
            secret = _DEV_FALLBACK_SECRET
        return cls(secret, settings.payment_details_encryption_salt)

    # ------------------------------------------------------------------
    # Cifrado
    # ------------------------------------------------------------------
    def encrypt(self, details: Mapping[str, Any]) -> str:
        """Serializa (JSON con claves ordenadas) y cifra; retorna 'ENC:<token>'."""
        payload = json.dumps(dict(details), sort_keys=True, separators=(",", ":"))
        token = self._fernet.encrypt(payload.encode("utf-8"))
        return f"{self.ENCRYPTED_PREFIX}{token.decode('ascii')}"

    def decrypt(self, ciphertext: str) -> dict[str, Any]:
        """
        Descifra un valor producido por encrypt().

        Raises:
            PaymentDetailsError: prefijo ausente, token inválido o JSON corrupto
        """
        if not ciphertext or not ciphertext.startswith(self.ENCRYPTED_PREFIX):
            raise PaymentDetailsError("Datos de pago sin cifrar o vacíos")
        token = ciphertext[len(self.ENCRYPTED_PREFIX):]
        try:
            raw = self._fernet.decrypt(token.encode("ascii"))
        except InvalidToken as e:
            raise PaymentDetailsError("Decryption failed: Invalid token or key") from e
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise PaymentDetailsError("Datos de pago descifrados no son JSON válido") from e
        if not isinstance(data, dict):
            raise PaymentDetailsError("Datos de pago descifrados no son un objeto")
        return data

    # ------------------------------------------------------------------
    # Huella
    # ------------------------------------------------------------------
    @staticmethod
    def fingerprint(details: Mapping[str, Any]) -> Optional[str]:
        """
        SHA-256 hex de los campos identificadores unidos por '|'.

        Los campos vacíos se omiten; sin ningún campo retorna None
        (un destino vacío nunca coincide con otro).

        Examples:
            >>> PaymentDetailsCodec.fingerprint({"iban": "DE89 3704"}) == \\
            ...     PaymentDetailsCodec.fingerprint({"iban": "DE89 3704", "swift_code": "X"})
            True
        """
        parts = []
        for field in FINGERPRINT_FIELDS:
            value = details.get(field)
            if value is None:
                continue
            text = str(value).strip()
            if field == "paypal_email":
                text = text.lower()
            if text:
                parts.append(text)
        if not parts:
            return None
        return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()

    def fingerprint_encrypted(self, ciphertext: str) -> Optional[str]:
        return self.fingerprint(self.decrypt(ciphertext))


__all__ = ["PaymentDetailsCodec", "PaymentDetailsError", "FINGERPRINT_FIELDS"]
# Fin del archivo backend/app/shared/security/payment_details_codec.py
