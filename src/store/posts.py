"""
Post store. Status is one of draft / generated / exported (CHECK); the
forward-only progression is enforced by the callers, not here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from src.db.engine import session_scope
from src.db.models import Post, now_ms
from src.store.base import dump, new_id

_UPDATABLE = ("category_id", "location_name", "overall_note", "title", "content_markdown", "status")


def create_post(
    user_id: str,
    category_id: str,
    location_name: str,
    overall_note: str,
    session: Session | None = None,
) -> Dict[str, Any]:
    now = now_ms()
    row = Post(
        id=new_id(),
        user_id=str(user_id),
        category_id=category_id,
        location_name=location_name,
        overall_note=overall_note,
        title="",
        content_markdown="",
        status="draft",
        created_at=now,
        updated_at=now,
    )
    with session_scope(session) as s:
        s.add(row)
        s.flush()
        return row.model_dump()


def get_post_by_id(post_id: str, session: Session | None = None) -> Optional[Dict[str, Any]]:
    with session_scope(session) as s:
        return dump(s.get(Post, post_id))


def list_posts_by_user(user_id: str) -> List[Dict[str, Any]]:
    stmt = select(Post).where(Post.user_id == str(user_id)).order_by(Post.updated_at.desc())
    with session_scope() as s:
        return [r.model_dump() for r in s.exec(stmt).all()]


def update_post(
    post_id: str,
    user_id: str,
    session: Session | None = None,
    **fields: Any,
) -> Optional[Dict[str, Any]]:
    """Partial update scoped to the owner. Unknown keys are ignored; None values are skipped."""
    changes = {k: v for k, v in fields.items() if k in _UPDATABLE and v is not None}
    with session_scope(session) as s:
        row = s.get(Post, post_id)
        if not row or row.user_id != str(user_id):
            return None
        for k, v in changes.items():
            setattr(row, k, v)
        row.updated_at = now_ms()
        s.add(row)
        s.flush()
        return row.model_dump()


def delete_post(post_id: str, user_id: str) -> bool:
    """Photos, crawl data, versions and their analyses go with it (ON DELETE CASCADE)."""
    with session_scope() as s:
        row = s.get(Post, post_id)
        if not row or row.user_id != str(user_id):
            return False
        s.delete(row)
        return True
