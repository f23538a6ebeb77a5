# -*- coding: utf-8 -*-
"""
backend/app/shared/integrations/notification_sender.py

Colaborador de notificaciones (email/push) del motor de facturación.

- NotificationSender: protocolo "enviar mensaje con plantilla a un
  usuario/afiliado".
- LoggingNotificationSender: stub que solo loguea (desarrollo/tests y
  default mientras no haya proveedor real conectado).

Autor: Naturinex Billing
Fecha: 2026-09-06
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationMessage:
    """Mensaje con plantilla dirigido a un destinatario."""

    recipient_id: str
    template: str
    context: dict[str, Any] = field(default_factory=dict)


class NotificationSender(Protocol):
    """Protocolo para implementaciones de envío de notificaciones."""

    async def send(self, message: NotificationMessage) -> None: ...


class LoggingNotificationSender:
    """Implementación que no envía nada; solo hace logging."""

    async def send(self, message: NotificationMessage) -> None:
        logger.info(
            f"[NOTIFY] template={message.template} → recipient={message.recipient_id} "
            f"keys={sorted(message.context)}"
        )


__all__ = [
    "NotificationMessage",
    "NotificationSender",
    "LoggingNotificationSender",
]
# Fin del archivo backend/app/shared/integrations/notification_sender.py
