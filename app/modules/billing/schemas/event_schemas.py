# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/schemas/event_schemas.py

Modelos Pydantic del sobre de evento del gateway y de los objetos que
cada tipo de evento transporta en data.object.

Cada WebhookEventType tiene un modelo de payload asociado en el
registro de handlers; el dispatcher valida data.object contra ese
modelo antes de invocar el handler.

Autor: Naturinex Billing
Fecha: 2026-09-09
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _GatewayModel(BaseModel):
    """Los objetos del gateway traen muchos campos que no usamos."""

    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Sobre del evento
# ---------------------------------------------------------------------------
class EventData(_GatewayModel):
    object: dict[str, Any] = Field(default_factory=dict)
    previous_attributes: Optional[dict[str, Any]] = None


class GatewayEvent(_GatewayModel):
    """Evento tal como lo entrega el webhook: {id, type, created, data}."""

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    created: Optional[int] = None
    data: EventData = Field(default_factory=EventData)


# ---------------------------------------------------------------------------
# Suscripciones
# ---------------------------------------------------------------------------
class _Price(_GatewayModel):
    id: Optional[str] = None


class _SubscriptionItem(_GatewayModel):
    price: Optional[_Price] = None


class _SubscriptionItems(_GatewayModel):
    data: list[_SubscriptionItem] = Field(default_factory=list)


class SubscriptionObject(_GatewayModel):
    id: str
    customer: str
    status: Optional[str] = None
    items: _SubscriptionItems = Field(default_factory=_SubscriptionItems)
    current_period_start: Optional[int] = None
    current_period_end: Optional[int] = None
    trial_end: Optional[int] = None
    cancel_at_period_end: bool = False
    canceled_at: Optional[int] = None

    @property
    def price_id(self) -> Optional[str]:
        """price.id del primer item (las suscripciones del producto tienen uno)."""
        for item in self.items.data:
            if item.price and item.price.id:
                return item.price.id
        return None


# ---------------------------------------------------------------------------
# Facturas
# ---------------------------------------------------------------------------
class _StatusTransitions(_GatewayModel):
    paid_at: Optional[int] = None


class FinalizationError(_GatewayModel):
    code: Optional[str] = None
    decline_code: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_card_declined(self) -> bool:
        return bool(self.decline_code) or self.code == "card_declined"


class InvoiceObject(_GatewayModel):
    id: Optional[str] = None
    customer: str
    subscription: Optional[str] = None
    amount_due: int = 0
    amount_paid: int = 0
    currency: str = "usd"
    description: Optional[str] = None
    period_start: Optional[int] = None
    period_end: Optional[int] = None
    attempt_count: Optional[int] = None
    status_transitions: _StatusTransitions = Field(default_factory=_StatusTransitions)
    last_finalization_error: Optional[FinalizationError] = None


# ---------------------------------------------------------------------------
# Métodos de pago
# ---------------------------------------------------------------------------
class _Card(_GatewayModel):
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None


class PaymentMethodObject(_GatewayModel):
    id: str
    customer: Optional[str] = None
    type: str = "card"
    card: Optional[_Card] = None


__all__ = [
    "EventData",
    "GatewayEvent",
    "SubscriptionObject",
    "FinalizationError",
    "InvoiceObject",
    "PaymentMethodObject",
]

# Fin del archivo backend/app/modules/billing/schemas/event_schemas.py
