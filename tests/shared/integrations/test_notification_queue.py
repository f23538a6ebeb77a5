# -*- coding: utf-8 -*-
"""
Tests de la cola fire-and-forget de notificaciones.

Cubre:
- Entrega de mensajes por los workers
- Descarte sin bloquear cuando la cola está llena o no iniciada
- Errores del sender se cuentan y no detienen al worker
"""

import asyncio

import pytest

from app.shared.integrations import NotificationMessage, NotificationQueue


class CollectingSender:
    def __init__(self, fail_templates=()):
        self.sent = []
        self.fail_templates = set(fail_templates)

    async def send(self, message):
        if message.template in self.fail_templates:
            raise RuntimeError("smtp down")
        self.sent.append(message)


class BlockingSender:
    def __init__(self):
        self.release = asyncio.Event()

    async def send(self, message):
        await self.release.wait()


def _msg(template="payout_success", recipient="7"):
    return NotificationMessage(recipient_id=recipient, template=template, context={"amount": "57.50"})


@pytest.mark.asyncio
async def test_messages_are_delivered():
    sender = CollectingSender()
    queue = NotificationQueue(sender, maxsize=10, workers=2)
    await queue.start()

    assert queue.enqueue_many([_msg(), _msg("payment_receipt")]) == 2
    await queue.stop(timeout=1)

    assert sorted(m.template for m in sender.sent) == ["payment_receipt", "payout_success"]
    assert queue.sent == 2
    assert queue.running is False


@pytest.mark.asyncio
async def test_enqueue_before_start_is_dropped():
    queue = NotificationQueue(CollectingSender())
    assert queue.enqueue(_msg()) is False
    assert queue.dropped == 1


@pytest.mark.asyncio
async def test_full_queue_drops_without_blocking():
    sender = BlockingSender()
    queue = NotificationQueue(sender, maxsize=1, workers=1)
    await queue.start()

    assert queue.enqueue(_msg()) is True
    await asyncio.sleep(0)  # el worker toma el primer mensaje
    assert queue.enqueue(_msg()) is True
    assert queue.enqueue(_msg()) is False
    assert queue.dropped == 1

    sender.release.set()
    await queue.stop(timeout=1)


@pytest.mark.asyncio
async def test_sender_errors_are_counted():
    sender = CollectingSender(fail_templates={"payment_failed"})
    queue = NotificationQueue(sender, maxsize=10, workers=1)
    await queue.start()

    queue.enqueue(_msg("payment_failed"))
    queue.enqueue(_msg("payment_receipt"))
    await queue.drain(timeout=1)

    assert queue.failed == 1
    assert [m.template for m in sender.sent] == ["payment_receipt"]
    await queue.stop(timeout=1)
