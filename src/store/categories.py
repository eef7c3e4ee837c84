"""
Category store. (userId, name) is unique; deleting a category cascades to
its learning samples, style profile and monetization tip but leaves posts
pointing at the removed id.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from src.db.engine import session_scope
from src.db.models import Category, now_ms
from src.store.base import dump, new_id


def create_category(
    user_id: str,
    name: str,
    description: Optional[str] = None,
    session: Session | None = None,
) -> Dict[str, Any]:
    """Raises DuplicateError for a second category with the same name."""
    now = now_ms()
    row = Category(
        id=new_id(),
        user_id=str(user_id),
        name=name,
        description=description,
        created_at=now,
        updated_at=now,
    )
    with session_scope(session) as s:
        s.add(row)
        s.flush()
        return row.model_dump()


def get_category_by_id(category_id: str) -> Optional[Dict[str, Any]]:
    with session_scope() as s:
        return dump(s.get(Category, category_id))


def list_categories_by_user(user_id: str) -> List[Dict[str, Any]]:
    stmt = (
        select(Category)
        .where(Category.user_id == str(user_id))
        .order_by(Category.updated_at.desc())
    )
    with session_scope() as s:
        return [r.model_dump() for r in s.exec(stmt).all()]


def delete_category(category_id: str, user_id: str) -> bool:
    with session_scope() as s:
        row = s.get(Category, category_id)
        if not row or row.user_id != str(user_id):
            return False
        s.delete(row)
        return True
