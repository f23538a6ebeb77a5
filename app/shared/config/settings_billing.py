# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_billing.py

Configuración de ingesta de webhooks del gateway de pagos y del motor
de dunning (reintentos de cobro).

Descripción:
    Centraliza secreto de firma, ventana de tolerancia, política de
    reintentos de handlers, calendario de dunning, mapeo precio→tier
    y parámetros de la cola de notificaciones.

Autor: Naturinex Billing
Fecha: 03/09/2026
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_DEFAULT_PRICE_TIERS = {
    "price_plus_monthly": "plus",
    "price_plus_yearly": "plus",
    "price_pro_monthly": "pro",
    "price_pro_yearly": "pro",
    "price_enterprise_monthly": "enterprise",
    "price_enterprise_yearly": "enterprise",
}


class BillingSettings(BaseSettings):
    """Configuración de webhooks de facturación y dunning."""

    # =========================================================================
    # FIRMA DE WEBHOOKS
    # =========================================================================

    webhook_signing_secret: Optional[str] = Field(
        default=None,
        validation_alias="WEBHOOK_SIGNING_SECRET",
        description="Secreto compartido con el gateway para HMAC-SHA256",
    )

    signature_tolerance_seconds: int = Field(
        default=300,
        validation_alias="WEBHOOK_SIGNATURE_TOLERANCE_SECONDS",
        description="Tolerancia de timestamp de la firma (5 minutos)",
    )

    allow_insecure_webhooks: bool = Field(
        default=False,
        validation_alias="ALLOW_INSECURE_WEBHOOKS",
        description="Omite la verificación de firma (SOLO DESARROLLO, ignorado en producción)",
    )

    # =========================================================================
    # REINTENTOS DE HANDLERS
    # =========================================================================

    webhook_handler_max_attempts: int = Field(
        default=3,
        validation_alias="WEBHOOK_HANDLER_MAX_ATTEMPTS",
        description="Intentos máximos por handler antes de estacionar el evento",
    )

    webhook_retry_base_delay_seconds: float = Field(
        default=1.0,
        validation_alias="WEBHOOK_RETRY_BASE_DELAY_SECONDS",
        description="Delay base del backoff exponencial (base × 2^(n-1))",
    )

    webhook_handler_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="WEBHOOK_HANDLER_TIMEOUT_SECONDS",
        description="Timeout por intento de handler",
    )

    webhook_processing_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="WEBHOOK_PROCESSING_TIMEOUT_SECONDS",
        description="Presupuesto total de reintentos locales por entrega",
    )

    idempotency_lease_seconds: int = Field(
        default=120,
        validation_alias="WEBHOOK_IDEMPOTENCY_LEASE_SECONDS",
        description="Tiempo tras el cual un registro 'received' huérfano puede reclamarse",
    )

    # =========================================================================
    # DUNNING
    # =========================================================================

    dunning_max_attempts: int = Field(
        default=4,
        validation_alias="DUNNING_MAX_ATTEMPTS",
        description="Intentos fallidos tras los cuales se cancela la suscripción",
    )

    dunning_retry_intervals_days: Annotated[list[int], NoDecode] = Field(
        default_factory=lambda: [3, 5, 7, 10],
        validation_alias="DUNNING_RETRY_INTERVALS_DAYS",
        description="Días hasta el siguiente reintento según número de intento",
    )

    dunning_grace_period_days: int = Field(
        default=3,
        validation_alias="DUNNING_GRACE_PERIOD_DAYS",
        description="Ventana de lookback para contar intentos previos",
    )

    dunning_retry_job_interval_minutes: int = Field(
        default=60,
        validation_alias="DUNNING_RETRY_JOB_INTERVAL_MINUTES",
    )

    # =========================================================================
    # SUSCRIPCIONES
    # =========================================================================

    price_tier_map: dict[str, str] = Field(
        default_factory=lambda: dict(_DEFAULT_PRICE_TIERS),
        validation_alias="PRICE_TIER_MAP",
        description="Mapeo price_id del gateway → tier",
    )

    entitlement_cache_ttl_seconds: int = Field(
        default=300,
        validation_alias="ENTITLEMENT_CACHE_TTL_SECONDS",
    )

    entitlement_cache_max_size: int = Field(
        default=10_000,
        validation_alias="ENTITLEMENT_CACHE_MAX_SIZE",
    )

    # =========================================================================
    # API DEL GATEWAY (cancelación / cobro de facturas)
    # =========================================================================

    gateway_api_base_url: Optional[str] = Field(
        default=None,
        validation_alias="GATEWAY_API_BASE_URL",
        description="Sin URL se usa el cliente stub que solo loguea",
    )

    gateway_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias="GATEWAY_API_KEY",
    )

    gateway_timeout_seconds: float = Field(
        default=15.0,
        validation_alias="GATEWAY_TIMEOUT_SECONDS",
    )

    # =========================================================================
    # NOTIFICACIONES
    # =========================================================================

    notification_queue_size: int = Field(
        default=1000,
        validation_alias="NOTIFICATION_QUEUE_SIZE",
    )

    notification_workers: int = Field(
        default=2,
        validation_alias="NOTIFICATION_WORKERS",
    )

    notification_send_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="NOTIFICATION_SEND_TIMEOUT_SECONDS",
    )

    # ----- Normalizadores -----
    @field_validator("dunning_retry_intervals_days", mode="before")
    @classmethod
    def _parse_intervals(cls, v: Any) -> Any:
        """Acepta JSON ("[3,5,7,10]") o lista separada por comas ("3,5,7,10")."""
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("["):
                return json.loads(s)
            return [int(x) for x in s.split(",") if x.strip()]
        return v

    @field_validator("dunning_retry_intervals_days")
    @classmethod
    def _intervals_not_empty(cls, v: list[int]) -> list[int]:
        if not v or any(d <= 0 for d in v):
            raise ValueError("DUNNING_RETRY_INTERVALS_DAYS requiere días positivos")
        return v

    @field_validator("price_tier_map", mode="before")
    @classmethod
    def _parse_price_map(cls, v: Any) -> Any:
        if isinstance(v, str):
            return json.loads(v) if v.strip() else dict(_DEFAULT_PRICE_TIERS)
        return v

    def retry_interval_days(self, attempt_number: int) -> int:
        """Días de espera tras el intento `attempt_number` (1-based); último valor si excede."""
        intervals = self.dunning_retry_intervals_days
        idx = min(max(attempt_number, 1), len(intervals)) - 1
        return intervals[idx]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Singleton global
_billing_settings: Optional[BillingSettings] = None


def get_billing_settings() -> BillingSettings:
    """
    Obtiene la instancia global de configuración de facturación.

    Returns:
        BillingSettings: Configuración de webhooks y dunning
    """
    global _billing_settings
    if _billing_settings is None:
        _billing_settings = BillingSettings()
    return _billing_settings


def reset_billing_settings() -> None:
    """Descarta el singleton (útil en tests tras cambiar variables de entorno)."""
    global _billing_settings
    _billing_settings = None


__all__ = [
    "BillingSettings",
    "get_billing_settings",
    "reset_billing_settings",
]
# Fin del archivo backend/app/shared/config/settings_billing.py
