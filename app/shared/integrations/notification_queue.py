# -*- coding: utf-8 -*-
"""
backend/app/shared/integrations/notification_queue.py

Cola acotada fire-and-forget para notificaciones.

- enqueue() nunca bloquea: si la cola está llena el mensaje se descarta
  con warning (la notificación nunca condiciona el estado de facturación).
- N workers asyncio consumen la cola; cada envío tiene timeout y sus
  errores se loguean.
- Los llamadores encolan SOLO después de que la transacción que produjo
  el mensaje hizo commit.

Autor: Naturinex Billing
Fecha: 2026-09-06
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from .notification_sender import NotificationMessage, NotificationSender

logger = logging.getLogger(__name__)


class NotificationQueue:
    """
    Pool de workers sobre asyncio.Queue acotada.

    Args:
        sender: Implementación de NotificationSender
        maxsize: Capacidad de la cola
        workers: Número de tasks consumidoras
        send_timeout: Timeout por envío en segundos
    """

    def __init__(
        self,
        sender: NotificationSender,
        maxsize: int = 1000,
        workers: int = 2,
        send_timeout: float = 10.0,
    ):
        self._sender = sender
        self._maxsize = maxsize
        self._workers_count = max(1, workers)
        self._send_timeout = send_timeout
        self._queue: Optional[asyncio.Queue[NotificationMessage]] = None
        self._workers: list[asyncio.Task] = []
        self.dropped = 0
        self.failed = 0
        self.sent = 0

    @property
    def running(self) -> bool:
        return bool(self._workers)

    async def start(self) -> None:
        if self._workers:
            return
        self._queue = asyncio.Queue(maxsize=self._maxsize)
        self._workers = [
            asyncio.create_task(self._worker(i, self._queue), name=f"notification-worker-{i}")
            for i in range(self._workers_count)
        ]
        logger.info(f"📨 NotificationQueue iniciada (workers={self._workers_count}, maxsize={self._maxsize})")

    async def stop(self, timeout: float = 10.0) -> None:
        """Drena lo pendiente (hasta `timeout`) y cancela los workers."""
        if not self._workers:
            return
        try:
            await self.drain(timeout=timeout)
        finally:
            for task in self._workers:
                task.cancel()
            await asyncio.gather(*self._workers, return_exceptions=True)
            self._workers = []
            logger.info("📨 NotificationQueue detenida")

    async def drain(self, timeout: float = 10.0) -> None:
        """Espera a que la cola se vacíe."""
        if self._queue is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ NotificationQueue: timeout drenando cola ({self._queue.qsize()} pendientes)")

    def enqueue(self, message: NotificationMessage) -> bool:
        """Encola sin bloquear. Retorna False si se descartó."""
        if self._queue is None:
            logger.warning(f"⚠️ NotificationQueue no iniciada - descartando {message.template}")
            self.dropped += 1
            return False
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"⚠️ NotificationQueue llena - descartando {message.template} → {message.recipient_id}")
            return False

    def enqueue_many(self, messages: Iterable[NotificationMessage]) -> int:
        return sum(1 for m in messages if self.enqueue(m))

    async def _worker(self, index: int, queue: asyncio.Queue) -> None:
        while True:
            message = await queue.get()
            try:
                await asyncio.wait_for(self._sender.send(message), timeout=self._send_timeout)
                self.sent += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed += 1
                logger.error(
                    f"❌ Notificación fallida template={message.template} "
                    f"recipient={message.recipient_id} worker={index}: {e}"
                )
            finally:
                queue.task_done()


__all__ = ["NotificationQueue"]
# Fin del archivo backend/app/shared/integrations/notification_queue.py
