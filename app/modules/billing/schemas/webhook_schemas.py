# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/schemas/webhook_schemas.py

Respuestas HTTP de ingesta y administración de webhooks.

Autor: Naturinex Billing
Fecha: 2026-09-09
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookAck(BaseModel):
    """Acuse devuelto al gateway."""

    status: Literal["processed", "duplicate", "ignored", "queued_for_replay"]
    event_id: Optional[str] = None
    duplicate: bool = False
    result: Optional[dict[str, Any]] = None


class ParkedEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_id: str
    event_type: str
    status: str
    attempts: int
    last_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ParkedEventList(BaseModel):
    items: list[ParkedEventOut] = Field(default_factory=list)
    count: int = 0


__all__ = ["WebhookAck", "ParkedEventOut", "ParkedEventList"]

# Fin del archivo backend/app/modules/billing/schemas/webhook_schemas.py
