"""
Map verified payments-provider events onto the subscriptions table.

    checkout.session.completed     -> active / pro (subscription mode only)
    customer.subscription.updated  -> copy status, tier from metadata
    customer.subscription.deleted  -> canceled / free
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.log import get_logger
from src.observability import metrics
from src.store import subscriptions
from src.store.users import get_user_by_email

logger = get_logger(__name__)

_PAID_TIERS = ("pro", "enterprise")
_ACTIVE_STATUSES = ("active", "trialing")


def resolve_tier(subscription: Dict[str, Any]) -> str:
    meta_tier = (subscription.get("metadata") or {}).get("tier")
    if meta_tier in _PAID_TIERS:
        return meta_tier

    items = (subscription.get("items") or {}).get("data") or []
    price = (items[0].get("price") or {}) if items else {}
    price_tier = (price.get("metadata") or {}).get("tier") or price.get("lookup_key")
    if price_tier in _PAID_TIERS:
        return price_tier
    return "pro"


def resolve_user_id(customer_id: Optional[str], email: Optional[str] = None) -> Optional[int]:
    if customer_id:
        sub = subscriptions.get_subscription_by_customer_id(customer_id)
        if sub:
            return sub["user_id"]
    if email:
        user = get_user_by_email(email)
        if user:
            return user["id"]
    return None


def _period_end_iso(value: Any) -> Optional[str]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).isoformat().replace("+00:00", "Z")


_HANDLED_EVENTS = (
    "checkout.session.completed",
    "customer.subscription.updated",
    "customer.subscription.deleted",
)


def handle_event(event: Dict[str, Any]) -> bool:
    """Apply one event. Returns True when a subscription row was written."""
    event_type = event.get("type")
    applied = _apply_event(event_type, event)
    label = event_type if event_type in _HANDLED_EVENTS else "other"
    metrics.webhook_events_total.labels(event_type=label, applied=str(applied).lower()).inc()
    return applied


def _apply_event(event_type: Optional[str], event: Dict[str, Any]) -> bool:
    obj = (event.get("data") or {}).get("object") or {}

    if event_type == "checkout.session.completed":
        if obj.get("mode") != "subscription" or not obj.get("subscription"):
            return False
        user_id = resolve_user_id(obj.get("customer"), obj.get("customer_email"))
        if user_id is None:
            logger.warning("checkout completed for unknown customer %s", obj.get("customer"))
            return False
        subscriptions.upsert_subscription(
            user_id, obj["customer"], obj["subscription"], status="active", tier="pro",
        )
        logger.info("subscription started user=%s", user_id)
        return True

    if event_type == "customer.subscription.updated":
        user_id = resolve_user_id(obj.get("customer"))
        if user_id is None:
            logger.warning("subscription update for unknown customer %s", obj.get("customer"))
            return False
        status = obj.get("status", "")
        tier = resolve_tier(obj) if status in _ACTIVE_STATUSES else "free"
        subscriptions.upsert_subscription(
            user_id, obj["customer"], obj.get("id"), status=status, tier=tier,
            current_period_end=_period_end_iso(obj.get("current_period_end")),
        )
        logger.info("subscription updated user=%s status=%s tier=%s", user_id, status, tier)
        return True

    if event_type == "customer.subscription.deleted":
        changed = subscriptions.deactivate_subscription(obj.get("id", ""))
        logger.info("subscription deleted id=%s matched=%s", obj.get("id"), changed)
        return changed

    logger.debug("ignored payments event %s", event_type)
    return False
