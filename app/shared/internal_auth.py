# -*- coding: utf-8 -*-
"""
backend/app/shared/internal_auth.py

Autenticación de operador/servicio interno para endpoints administrativos
(disparo manual de payouts, reintentos, replay de webhooks estacionados).

Uso:
    from app.shared.internal_auth import InternalServiceAuth

Autor: Naturinex Billing
Fecha: 2026-09-06
"""

from __future__ import annotations

import hmac
import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from app.shared.config.config_loader import get_settings

logger = logging.getLogger(__name__)


def _parse_bearer(authorization: Optional[str]) -> str:
    """Extrae el token de 'Bearer <token>' o lanza 401."""
    if not authorization:
        logger.warning("internal_auth_missing_header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        logger.warning("internal_auth_invalid_format")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


async def require_internal_service_token(
    authorization: Annotated[str | None, Header()] = None,
) -> bool:
    """
    Valida Authorization: Bearer <APP_SERVICE_TOKEN>.

    Raises:
        HTTPException 500: token no configurado en el backend
        HTTPException 401: header ausente o mal formado
        HTTPException 403: token inválido
    """
    configured = get_settings().internal_service_token
    if configured is None or not configured.get_secret_value():
        logger.error("internal_service_token_not_configured: APP_SERVICE_TOKEN must be set")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal service token not configured",
        )

    provided = _parse_bearer(authorization)

    # Comparación timing-safe
    if not hmac.compare_digest(provided.encode("utf-8"), configured.get_secret_value().encode("utf-8")):
        logger.warning("internal_auth_invalid_token")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid service token",
        )
    return True


# Type alias para uso en endpoints con Depends()
InternalServiceAuth = Annotated[bool, Depends(require_internal_service_token)]


__all__ = [
    "require_internal_service_token",
    "InternalServiceAuth",
]
# Fin del archivo backend/app/shared/internal_auth.py
