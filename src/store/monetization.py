"""Monetization tip: at most one per (user, category), written by upsert."""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlmodel import select

from src.db.engine import session_scope
from src.db.models import MonetizationTip
from src.store.base import dump, upsert_by_natural_key


def get_monetization_tip(user_id: str, category_id: str) -> Optional[Dict[str, Any]]:
    stmt = select(MonetizationTip).where(
        MonetizationTip.user_id == str(user_id),
        MonetizationTip.category_id == category_id,
    )
    with session_scope() as s:
        return dump(s.exec(stmt).first())


def upsert_monetization_tip(
    user_id: str,
    category_id: str,
    recommended_method: str,
    tip_text: str,
) -> Dict[str, Any]:
    return upsert_by_natural_key(
        MonetizationTip,
        key={"user_id": str(user_id), "category_id": category_id},
        payload={"recommended_method": recommended_method, "tip_text": tip_text},
    )
