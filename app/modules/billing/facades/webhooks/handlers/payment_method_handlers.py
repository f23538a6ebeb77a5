# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/webhooks/handlers/payment_method_handlers.py

payment_method.attached: upsert del método de pago. Nunca se marca
como default de forma implícita.

Autor: Naturinex Billing
Fecha: 2026-09-11
"""

from __future__ import annotations

import logging
from typing import Any

from ....schemas import PaymentMethodObject
from ..context import HandlerContext
from .subscription_handlers import account_for_customer

logger = logging.getLogger(__name__)


async def handle_payment_method_attached(ctx: HandlerContext, pm: PaymentMethodObject) -> dict[str, Any]:
    account = await account_for_customer(ctx, pm.customer)
    repo = ctx.deps.payment_method_repo

    card = pm.card
    fields = dict(
        owner_id=account.owner_id,
        type=pm.type,
        card_brand=card.brand if card else None,
        card_last4=card.last4 if card else None,
        card_exp_month=card.exp_month if card else None,
        card_exp_year=card.exp_year if card else None,
    )

    existing = await repo.get_by_gateway_id(ctx.session, pm.id)
    if existing is None:
        await repo.create(ctx.session, gateway_payment_method_id=pm.id, is_default=False, **fields)
        created = True
    else:
        for key, value in fields.items():
            setattr(existing, key, value)
        created = False
    await ctx.session.flush()

    logger.info(f"Método de pago {'creado' if created else 'actualizado'} owner={account.owner_id} pm={pm.id}")
    return {"owner_id": account.owner_id, "payment_method_id": pm.id, "created": created}


__all__ = ["handle_payment_method_attached"]

# Fin del archivo backend/app/modules/billing/facades/webhooks/handlers/payment_method_handlers.py
