# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/webhooks/__init__.py

Exporta las funciones clave de facades/webhooks.

Autor: Naturinex Billing
Fecha: 2026-09-12
"""

from .context import BillingDependencies, HandlerContext
from .dispatcher import DispatchOutcome, EventDispatcher
from .handlers import HANDLER_REGISTRY, HandlerSpec
from .process import list_parked_events, parse_event, process_webhook, replay_parked_event

__all__ = [
    "BillingDependencies",
    "HandlerContext",
    "DispatchOutcome",
    "EventDispatcher",
    "HANDLER_REGISTRY",
    "HandlerSpec",
    "list_parked_events",
    "parse_event",
    "process_webhook",
    "replay_parked_event",
]

# Fin del archivo backend/app/modules/billing/facades/webhooks/__init__.py
