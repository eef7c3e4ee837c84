"""
Post versions: immutable, numbered snapshots of generated title + body.
versionNumber starts at 1 and is unique per post; rows are never updated.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func, insert, literal, select as sa_select
from sqlmodel import Session, select

from src.db.engine import session_scope
from src.db.models import PostVersion, now_ms
from src.store.base import dump, new_id


def create_post_version_next(
    user_id: str,
    post_id: str,
    title: str,
    content_markdown: str,
    prompt_note: str = "",
    session: Session | None = None,
) -> Dict[str, Any]:
    """
    Insert the post's next version (MAX(versionNumber) + 1, or 1 for the first).

    The max is computed inside the INSERT ... SELECT statement, so the read
    and the write happen under the same write lock; two concurrent calls for
    one post get consecutive numbers, and the (postId, versionNumber) unique
    index rejects anything that slips through.
    """
    version_id = new_id()
    t = PostVersion.__table__
    next_number = (
        sa_select(
            literal(version_id),
            literal(str(user_id)),
            literal(post_id),
            func.coalesce(func.max(t.c.versionNumber), 0) + 1,
            literal(prompt_note or ""),
            literal(title),
            literal(content_markdown),
            literal(now_ms()),
        )
        .where(t.c.postId == post_id)
    )
    stmt = insert(t).from_select(
        [
            t.c.id,
            t.c.userId,
            t.c.postId,
            t.c.versionNumber,
            t.c.promptNote,
            t.c.title,
            t.c.contentMarkdown,
            t.c.createdAt,
        ],
        next_number,
    )
    with session_scope(session) as s:
        s.execute(stmt)
        return s.get(PostVersion, version_id).model_dump()


def get_latest_post_version(user_id: str, post_id: str) -> Optional[Dict[str, Any]]:
    stmt = (
        select(PostVersion)
        .where(PostVersion.user_id == str(user_id), PostVersion.post_id == post_id)
        .order_by(PostVersion.version_number.desc())
        .limit(1)
    )
    with session_scope() as s:
        return dump(s.exec(stmt).first())


def get_post_version_by_id(version_id: str) -> Optional[Dict[str, Any]]:
    with session_scope() as s:
        return dump(s.get(PostVersion, version_id))


def list_post_versions(user_id: str, post_id: str) -> List[Dict[str, Any]]:
    stmt = (
        select(PostVersion)
        .where(PostVersion.user_id == str(user_id), PostVersion.post_id == post_id)
        .order_by(PostVersion.version_number.desc())
    )
    with session_scope() as s:
        return [r.model_dump() for r in s.exec(stmt).all()]
