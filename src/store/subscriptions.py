"""
Subscription rows, one per user, mirrored from the payments provider's
webhook events.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlmodel import select

from src.db.engine import session_scope
from src.db.models import Subscription, now_iso
from src.store.base import dump


def get_subscription_by_user_id(user_id: int) -> Optional[Dict[str, Any]]:
    stmt = select(Subscription).where(Subscription.user_id == int(user_id))
    with session_scope() as s:
        return dump(s.exec(stmt).first())


def get_subscription_by_customer_id(customer_id: str) -> Optional[Dict[str, Any]]:
    stmt = select(Subscription).where(Subscription.stripe_customer_id == customer_id)
    with session_scope() as s:
        return dump(s.exec(stmt).first())


def get_subscription_tier(user_id: int) -> str:
    """Tier of an active subscription; anything else is 'free'."""
    stmt = select(Subscription).where(
        Subscription.user_id == int(user_id),
        Subscription.status == "active",
    )
    with session_scope() as s:
        row = s.exec(stmt).first()
        return row.tier if row else "free"


def upsert_subscription(
    user_id: int,
    stripe_customer_id: str,
    stripe_subscription_id: Optional[str],
    status: str,
    tier: str,
    current_period_end: Optional[str] = None,
) -> Dict[str, Any]:
    stmt = select(Subscription).where(Subscription.user_id == int(user_id))
    with session_scope() as s:
        row = s.exec(stmt).first()
        if row is None:
            row = Subscription(user_id=int(user_id))
        row.stripe_customer_id = stripe_customer_id
        row.stripe_subscription_id = stripe_subscription_id
        row.status = status
        row.tier = tier
        row.current_period_end = current_period_end
        row.updated_at = now_iso()
        s.add(row)
        s.flush()
        return row.model_dump()


def deactivate_subscription(stripe_subscription_id: str) -> bool:
    stmt = select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
    with session_scope() as s:
        row = s.exec(stmt).first()
        if row is None:
            return False
        row.status = "canceled"
        row.tier = "free"
        row.updated_at = now_iso()
        s.add(row)
        return True
