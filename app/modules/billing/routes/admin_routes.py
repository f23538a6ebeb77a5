# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/routes/admin_routes.py

Rutas internas de operación del ledger de webhooks.

Endpoints (Bearer APP_SERVICE_TOKEN):
- GET  /billing/webhooks/parked            → eventos en needs_attention
- POST /billing/webhooks/{event_id}/replay → re-despacho manual

Autor: Naturinex Billing
Fecha: 2026-09-12
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.shared.internal_auth import InternalServiceAuth
from ..errors import EventNotReplayable
from ..facades.webhooks import EventDispatcher, list_parked_events, replay_parked_event
from ..schemas import ParkedEventList, ParkedEventOut
from .dependencies import get_event_dispatcher

router = APIRouter(
    prefix="/webhooks",
    tags=["billing:admin"],
)


@router.get("/parked", response_model=ParkedEventList)
async def get_parked_events(
    _auth: InternalServiceAuth,
    limit: int = Query(default=100, ge=1, le=500),
    session: AsyncSession = Depends(get_async_session),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> ParkedEventList:
    events = await list_parked_events(session, dispatcher, limit=limit)
    items = [ParkedEventOut.model_validate(e) for e in events]
    return ParkedEventList(items=items, count=len(items))


@router.post("/{event_id}/replay")
async def replay_event(
    event_id: str,
    _auth: InternalServiceAuth,
    session: AsyncSession = Depends(get_async_session),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> dict[str, Any]:
    try:
        outcomes = await replay_parked_event(session, dispatcher, event_id)
    except EventNotReplayable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"event_id": event_id, "outcomes": [o.as_dict() for o in outcomes]}


# Fin del archivo backend/app/modules/billing/routes/admin_routes.py
