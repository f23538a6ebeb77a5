# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_payouts.py

Configuración de pagos a afiliados (payouts) y screening de fraude.

Descripción:
    Umbral mínimo global, comisión de procesamiento, retención de
    impuestos, rails soportados, umbral de riesgo, reintentos máximos,
    calendario del job y parámetros de cifrado de datos de pago.

Autor: Naturinex Billing
Fecha: 03/09/2026
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class PayoutSettings(BaseSettings):
    """Configuración del orquestador de payouts."""

    # =========================================================================
    # MONTOS
    # =========================================================================

    minimum_payout_threshold: Decimal = Field(
        default=Decimal("50.00"),
        validation_alias="PAYOUT_MINIMUM_THRESHOLD",
        description="Mínimo global de pendiente para ser elegible",
    )

    processing_fee: Decimal = Field(
        default=Decimal("2.50"),
        validation_alias="PAYOUT_PROCESSING_FEE",
        description="Comisión fija de procesamiento",
    )

    processing_fee_cap_rate: Decimal = Field(
        default=Decimal("0.05"),
        validation_alias="PAYOUT_PROCESSING_FEE_CAP_RATE",
        description="La comisión nunca excede este porcentaje del bruto",
    )

    tax_withholding_rate: Decimal = Field(
        default=Decimal("0"),
        validation_alias="PAYOUT_TAX_WITHHOLDING_RATE",
    )

    currency: str = Field(default="USD", validation_alias="PAYOUT_CURRENCY")

    supported_rails: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["bank_transfer", "paypal", "stripe", "wire_transfer"],
        validation_alias="PAYOUT_SUPPORTED_RAILS",
    )

    # =========================================================================
    # RIESGO Y REINTENTOS
    # =========================================================================

    fraud_risk_threshold: int = Field(
        default=50,
        validation_alias="FRAUD_RISK_THRESHOLD",
        description="Score a partir del cual el payout queda bloqueado",
    )

    max_payout_retries: int = Field(
        default=3,
        validation_alias="PAYOUT_MAX_RETRIES",
    )

    failed_payout_lookback_days: int = Field(
        default=30,
        validation_alias="PAYOUT_FAILED_LOOKBACK_DAYS",
    )

    transfer_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="PAYOUT_TRANSFER_TIMEOUT_SECONDS",
    )

    # =========================================================================
    # PROVEEDOR DE TRANSFERENCIAS
    # =========================================================================

    transfer_provider_url: Optional[str] = Field(
        default=None,
        validation_alias="PAYOUT_PROVIDER_URL",
        description="Sin URL se usa el proveedor stub (no mueve dinero)",
    )

    transfer_provider_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias="PAYOUT_PROVIDER_API_KEY",
    )

    # =========================================================================
    # SCHEDULER
    # =========================================================================

    payout_cron: str = Field(
        default="0 14 * * fri",
        validation_alias="PAYOUT_CRON",
        description="Viernes 14:00 UTC",
    )

    # =========================================================================
    # CIFRADO DE DATOS DE PAGO
    # =========================================================================

    payment_details_encryption_key: Optional[str] = Field(
        default=None,
        validation_alias="PAYMENT_DETAILS_ENCRYPTION_KEY",
    )

    payment_details_encryption_salt: str = Field(
        default="naturinex-payout-details",
        validation_alias="PAYMENT_DETAILS_ENCRYPTION_SALT",
    )

    @field_validator("supported_rails", mode="before")
    @classmethod
    def _parse_rails(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [x.strip() for x in v.split(",") if x.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Singleton global
_payout_settings: Optional[PayoutSettings] = None


def get_payout_settings() -> PayoutSettings:
    """
    Obtiene la instancia global de configuración de payouts.

    Returns:
        PayoutSettings: Configuración de payouts
    """
    global _payout_settings
    if _payout_settings is None:
        _payout_settings = PayoutSettings()
    return _payout_settings


def reset_payout_settings() -> None:
    """Descarta el singleton (útil en tests)."""
    global _payout_settings
    _payout_settings = None


__all__ = [
    "PayoutSettings",
    "get_payout_settings",
    "reset_payout_settings",
]
# Fin del archivo backend/app/shared/config/settings_payouts.py
