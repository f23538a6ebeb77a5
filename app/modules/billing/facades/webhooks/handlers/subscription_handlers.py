# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/facades/webhooks/handlers/subscription_handlers.py

Handlers de eventos de suscripción.

- created: resuelve el propietario por customer, fija tier/estado/fechas
- updated: clasifica el cambio (tier_change, status_change, cancellation)
  a partir de previous_attributes, aplica el estado y luego ejecuta los
  side-handlers de notificación en modo best-effort
- deleted: baja a free, limpia identificadores y entitlements
- trial_will_end: registra días restantes y avisa al propietario

Autor: Naturinex Billing
Fecha: 2026-09-11
"""

from __future__ import annotations

import logging
import math
from typing import Any, Awaitable, Callable

from app.shared.utils.datetime_helpers import ensure_utc, from_unix, to_iso8601, utcnow
from ....enums import SubscriptionStatus, SubscriptionTier
from ....errors import UnknownCustomer, UnknownSubscription
from ....models import BillingAccount
from ....schemas import SubscriptionObject
from ..context import HandlerContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Resolución de cuenta
# ---------------------------------------------------------------------------
async def account_for_customer(ctx: HandlerContext, customer_id: str | None) -> BillingAccount:
    account = None
    if customer_id:
        account = await ctx.deps.account_repo.get_by_customer(ctx.session, customer_id)
    if account is None:
        logger.warning(f"Evento {ctx.event.id}: customer sin mapeo {customer_id!r}")
        raise UnknownCustomer(customer_id)
    return account


async def account_for_subscription(ctx: HandlerContext, sub: SubscriptionObject) -> BillingAccount:
    """Busca por subscription_id; si aún no se asoció, por customer."""
    account = await ctx.deps.account_repo.get_by_subscription(ctx.session, sub.id)
    if account is None and sub.customer:
        account = await ctx.deps.account_repo.get_by_customer(ctx.session, sub.customer)
    if account is None:
        logger.warning(f"Evento {ctx.event.id}: suscripción sin mapeo {sub.id!r}")
        raise UnknownSubscription(sub.id)
    return account


def _apply_subscription(ctx: HandlerContext, account: BillingAccount, sub: SubscriptionObject) -> None:
    account.subscription_id = sub.id
    account.price_id = sub.price_id
    account.tier = ctx.tier_for_price(sub.price_id).value
    account.status = SubscriptionStatus.from_gateway(sub.status).value
    account.current_period_end = from_unix(sub.current_period_end)
    account.trial_end = from_unix(sub.trial_end)
    account.cancel_at_period_end = sub.cancel_at_period_end


async def _log_event(ctx: HandlerContext, account: BillingAccount, event_type: str, **details: Any) -> None:
    await ctx.deps.subscription_event_repo.create(
        ctx.session,
        owner_id=account.owner_id,
        event_type=event_type,
        subscription_id=account.subscription_id,
        details={"event_id": ctx.event.id, **details},
    )


# ---------------------------------------------------------------------------
# created
# ---------------------------------------------------------------------------
async def handle_subscription_created(ctx: HandlerContext, sub: SubscriptionObject) -> dict[str, Any]:
    account = await account_for_customer(ctx, sub.customer)
    _apply_subscription(ctx, account, sub)
    await _log_event(ctx, account, "created", tier=account.tier, status=account.status, price_id=sub.price_id)
    await ctx.session.flush()

    ctx.deps.entitlements.invalidate(account.owner_id)
    ctx.notify(account.owner_id, "subscription_welcome", tier=account.tier, trial_end=to_iso8601(account.trial_end))
    logger.info(f"Suscripción creada owner={account.owner_id} sub={sub.id} tier={account.tier} status={account.status}")
    return {"owner_id": account.owner_id, "tier": account.tier, "status": account.status}


# ---------------------------------------------------------------------------
# updated
# ---------------------------------------------------------------------------
def classify_changes(
    previous: dict[str, Any],
    old_tier: str,
    new_tier: str,
    old_status: str | None,
    new_status: str,
    cancel_at_period_end: bool,
) -> list[str]:
    """
    Solo cuenta como cambio lo que el gateway reporta en previous_attributes.

    Examples:
        >>> classify_changes({"status": "active"}, "plus", "plus", "active", "past_due", False)
        ['status_change']
        >>> classify_changes({}, "plus", "pro", "active", "active", False)
        []
    """
    changes: list[str] = []
    if ("items" in previous or "plan" in previous) and old_tier != new_tier:
        changes.append("tier_change")
    if "status" in previous and old_status != new_status:
        changes.append("status_change")
    if "cancel_at_period_end" in previous and cancel_at_period_end:
        changes.append("cancellation")
    return changes


async def _on_tier_change(ctx: HandlerContext, account: BillingAccount, old_tier: str, old_status: str | None) -> None:
    ctx.deps.entitlements.invalidate(account.owner_id)
    ctx.notify(account.owner_id, "tier_changed", old_tier=old_tier, new_tier=account.tier)


async def _on_status_change(ctx: HandlerContext, account: BillingAccount, old_tier: str, old_status: str | None) -> None:
    ctx.deps.entitlements.invalidate(account.owner_id)
    if account.status == SubscriptionStatus.PAST_DUE.value and old_status == SubscriptionStatus.ACTIVE.value:
        ctx.notify(account.owner_id, "subscription_past_due")
    elif account.status == SubscriptionStatus.ACTIVE.value and old_status == SubscriptionStatus.PAST_DUE.value:
        ctx.notify(account.owner_id, "subscription_reactivated")


async def _on_cancellation(ctx: HandlerContext, account: BillingAccount, old_tier: str, old_status: str | None) -> None:
    ctx.notify(
        account.owner_id,
        "subscription_cancel_scheduled",
        current_period_end=to_iso8601(account.current_period_end),
    )


_SIDE_HANDLERS: dict[str, Callable[[HandlerContext, BillingAccount, str, str | None], Awaitable[None]]] = {
    "tier_change": _on_tier_change,
    "status_change": _on_status_change,
    "cancellation": _on_cancellation,
}


async def handle_subscription_updated(ctx: HandlerContext, sub: SubscriptionObject) -> dict[str, Any]:
    account = await account_for_subscription(ctx, sub)
    old_tier = account.tier
    old_status = account.status

    _apply_subscription(ctx, account, sub)
    changes = classify_changes(
        ctx.previous_attributes,
        old_tier,
        account.tier,
        old_status,
        account.status,
        account.cancel_at_period_end,
    )
    for change in changes:
        await _log_event(
            ctx,
            account,
            change,
            old_tier=old_tier,
            new_tier=account.tier,
            old_status=old_status,
            new_status=account.status,
        )
    await ctx.session.flush()

    for change in changes:
        try:
            await _SIDE_HANDLERS[change](ctx, account, old_tier, old_status)
        except Exception:
            logger.exception(f"Side-handler {change} falló owner={account.owner_id} sub={sub.id}")

    logger.info(f"Suscripción actualizada owner={account.owner_id} sub={sub.id} cambios={changes}")
    return {"owner_id": account.owner_id, "changes": changes, "tier": account.tier, "status": account.status}


# ---------------------------------------------------------------------------
# deleted
# ---------------------------------------------------------------------------
async def handle_subscription_deleted(ctx: HandlerContext, sub: SubscriptionObject) -> dict[str, Any]:
    account = await account_for_subscription(ctx, sub)
    old_tier = account.tier

    await _log_event(ctx, account, "canceled", old_tier=old_tier)
    account.tier = SubscriptionTier.FREE.value
    account.status = SubscriptionStatus.CANCELED.value
    account.subscription_id = None
    account.price_id = None
    account.current_period_end = None
    account.trial_end = None
    account.cancel_at_period_end = False
    await ctx.session.flush()

    ctx.deps.entitlements.invalidate(account.owner_id)
    ctx.notify(account.owner_id, "subscription_canceled", old_tier=old_tier)
    logger.info(f"Suscripción eliminada owner={account.owner_id} sub={sub.id}: tier {old_tier} → free")
    return {"owner_id": account.owner_id, "tier": account.tier, "status": account.status}


# ---------------------------------------------------------------------------
# trial_will_end
# ---------------------------------------------------------------------------
async def handle_trial_will_end(ctx: HandlerContext, sub: SubscriptionObject) -> dict[str, Any]:
    account = await account_for_subscription(ctx, sub)
    trial_end = from_unix(sub.trial_end) or (ensure_utc(account.trial_end) if account.trial_end else None)
    days = 0
    if trial_end is not None:
        days = max(0, math.ceil((trial_end - utcnow()).total_seconds() / 86400))

    await _log_event(ctx, account, "trial_ending", days_until_end=days)
    await ctx.session.flush()

    ctx.notify(account.owner_id, "trial_ending", days_until_end=days, trial_end=to_iso8601(trial_end))
    return {"owner_id": account.owner_id, "days_until_end": days}


__all__ = [
    "account_for_customer",
    "account_for_subscription",
    "classify_changes",
    "handle_subscription_created",
    "handle_subscription_updated",
    "handle_subscription_deleted",
    "handle_trial_will_end",
]

# Fin del archivo backend/app/modules/billing/facades/webhooks/handlers/subscription_handlers.py
