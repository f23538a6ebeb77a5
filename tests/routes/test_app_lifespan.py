# -*- coding: utf-8 -*-
"""
Test del lifespan de la app: construye dispatcher, orquestador y cola
de notificaciones en app.state y los libera al apagar.

Autor: Naturinex Billing
Fecha: 2026-09-24
"""

import pytest
from asgi_lifespan import LifespanManager

from app.modules.affiliates.facades.payouts import PayoutOrchestrator
from app.modules.billing.facades.webhooks import EventDispatcher


@pytest.mark.asyncio
async def test_lifespan_wires_services(app):
    async with LifespanManager(app):
        assert isinstance(app.state.billing_dispatcher, EventDispatcher)
        assert isinstance(app.state.payout_orchestrator, PayoutOrchestrator)
        notifications = app.state.notifications
        assert notifications.running is True

    assert notifications.running is False
