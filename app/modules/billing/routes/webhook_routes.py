# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/routes/webhook_routes.py

Webhook endpoint del gateway de pagos.

Endpoint:
- POST /billing/webhooks

Respuestas:
- 200: procesado, duplicado o tipo ignorado
- 202: handler agotó reintentos; evento estacionado para replay
- 400: cuerpo o payload inválidos
- 401: firma ausente, vencida o inválida
- 500: no se pudo estacionar el evento (el gateway reintentará)

Autor: Naturinex Billing
Fecha: 2026-09-12
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from ..errors import SignatureError, WebhookPayloadError
from ..facades.webhooks import EventDispatcher, process_webhook
from ..schemas import WebhookAck
from .dependencies import get_event_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/webhooks",
    tags=["billing:webhooks"],
)


@router.post("", response_model=WebhookAck, status_code=status.HTTP_200_OK)
async def gateway_webhook(
    request: Request,
    signature: Optional[str] = Header(default=None, alias="Signature"),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    session: AsyncSession = Depends(get_async_session),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
):
    """
    Recibe eventos del gateway. El cuerpo se verifica byte a byte, por eso
    se lee crudo y no como modelo Pydantic.
    """
    raw_body = await request.body()

    try:
        outcome = await process_webhook(
            session,
            dispatcher,
            raw_body,
            signature,
            dedup_key=idempotency_key,
        )
    except SignatureError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"signature_{e.reason}")
    except WebhookPayloadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if outcome.status == "parked":
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"status": "queued_for_replay", "event_id": outcome.event_id},
        )

    return WebhookAck(
        status=outcome.status,
        event_id=outcome.event_id,
        duplicate=outcome.duplicate,
        result=outcome.result,
    )


# Fin del archivo backend/app/modules/billing/routes/webhook_routes.py
