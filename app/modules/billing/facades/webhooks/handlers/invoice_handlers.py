# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/webhooks/handlers/invoice_handlers.py

Handlers de facturas:
- payment_succeeded: resuelve el dunning, agrega línea de historial y
  restaura past_due → active
- payment_failed: delega en el motor de dunning

Autor: Naturinex Billing
Fecha: 2026-09-11
"""

from __future__ import annotations

import logging
from typing import Any

from app.shared.utils.datetime_helpers import from_unix, to_iso8601, utcnow
from app.shared.utils.money import cents_to_money
from ....enums import SubscriptionStatus
from ....errors import UnknownSubscription
from ....schemas import InvoiceObject
from ..context import HandlerContext
from .subscription_handlers import account_for_customer

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Subscription payment"


async def handle_invoice_payment_succeeded(ctx: HandlerContext, invoice: InvoiceObject) -> dict[str, Any]:
    account = await account_for_customer(ctx, invoice.customer)
    subscription_id = invoice.subscription or account.subscription_id

    cleared = 0
    if subscription_id:
        cleared = await ctx.deps.dunning_service.resolve(ctx.session, subscription_id)

    paid_at = from_unix(invoice.status_transitions.paid_at) or utcnow()
    amount = cents_to_money(invoice.amount_paid)
    if invoice.id:
        line = await ctx.deps.history_repo.get_by_invoice(ctx.session, invoice.id)
        fields = dict(
            owner_id=account.owner_id,
            amount=amount,
            currency=invoice.currency,
            status="paid",
            paid_at=paid_at,
            description=invoice.description or DEFAULT_DESCRIPTION,
            period_start=from_unix(invoice.period_start),
            period_end=from_unix(invoice.period_end),
        )
        if line is None:
            await ctx.deps.history_repo.create(ctx.session, invoice_id=invoice.id, **fields)
        else:
            for key, value in fields.items():
                setattr(line, key, value)

    restored = False
    if account.status == SubscriptionStatus.PAST_DUE.value:
        account.status = SubscriptionStatus.ACTIVE.value
        restored = True
        await ctx.deps.subscription_event_repo.create(
            ctx.session,
            owner_id=account.owner_id,
            event_type="status_change",
            subscription_id=subscription_id,
            details={"event_id": ctx.event.id, "old_status": "past_due", "new_status": "active"},
        )
    account.last_payment_at = paid_at
    await ctx.session.flush()

    if restored:
        ctx.deps.entitlements.invalidate(account.owner_id)
        ctx.notify(account.owner_id, "subscription_reactivated")
    ctx.notify(
        account.owner_id,
        "payment_receipt",
        invoice_id=invoice.id,
        amount=str(amount),
        currency=invoice.currency,
        paid_at=to_iso8601(paid_at),
    )
    logger.info(
        f"Cobro exitoso owner={account.owner_id} sub={subscription_id} invoice={invoice.id} "
        f"dunning_borrados={cleared} restaurado={restored}"
    )
    return {
        "owner_id": account.owner_id,
        "dunning_cleared": cleared,
        "restored": restored,
        "amount": str(amount),
    }


async def handle_invoice_payment_failed(ctx: HandlerContext, invoice: InvoiceObject) -> dict[str, Any]:
    account = await account_for_customer(ctx, invoice.customer)
    subscription_id = invoice.subscription or account.subscription_id
    if not subscription_id:
        raise UnknownSubscription(invoice.subscription)

    outcome = await ctx.deps.dunning_service.record_failure(ctx.session, account, subscription_id, invoice)

    amount = str(cents_to_money(invoice.amount_due))
    if outcome.exhausted:
        ctx.notify(
            account.owner_id,
            "subscription_canceled_payment_failure",
            attempt_number=outcome.attempt_number,
            amount=amount,
            currency=invoice.currency,
        )
    else:
        ctx.notify(
            account.owner_id,
            "payment_failed",
            attempt_number=outcome.attempt_number,
            max_attempts=outcome.max_attempts,
            next_retry_at=to_iso8601(outcome.next_retry_at),
            amount=amount,
            currency=invoice.currency,
        )
    if outcome.card_declined:
        ctx.notify(account.owner_id, "payment_method_update_required")

    return {"owner_id": account.owner_id, "subscription_id": subscription_id, **outcome.as_dict()}


__all__ = [
    "DEFAULT_DESCRIPTION",
    "handle_invoice_payment_succeeded",
    "handle_invoice_payment_failed",
]

# Fin del archivo backend/app/modules/billing/facades/webhooks/handlers/invoice_handlers.py
