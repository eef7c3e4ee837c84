"""
Photo store: per-post ordering by sortOrder (unique per post, 1-based) and
the 20-photo cap, which the trg_photos_max_20 trigger enforces.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, insert, literal, select as sa_select, update
from sqlmodel import Session, select

from src.db.engine import session_scope
from src.db.models import Photo, now_ms
from src.store.base import dump, new_id

# Must stay above MAX_PHOTOS_PER_POST so shifted values never meet 1..N.
REORDER_OFFSET = 1000


def list_photos_by_post(user_id: str, post_id: str) -> List[Dict[str, Any]]:
    stmt = (
        select(Photo)
        .where(Photo.user_id == str(user_id), Photo.post_id == post_id)
        .order_by(Photo.sort_order.asc())
    )
    with session_scope() as s:
        return [r.model_dump() for r in s.exec(stmt).all()]


def get_photo(photo_id: str) -> Optional[Dict[str, Any]]:
    with session_scope() as s:
        return dump(s.get(Photo, photo_id))


def add_photo_with_next_sort_order(
    user_id: str,
    post_id: str,
    original_file_name: str,
    stored_file_path: str,
    memo: str,
    session: Session | None = None,
) -> Dict[str, Any]:
    """
    Append a photo at MAX(sortOrder)+1. The max is read by the INSERT itself,
    so two uploads to the same post cannot pick the same slot.

    Raises PhotoLimitExceeded when the post already holds 20 photos.
    """
    photo_id = new_id()
    t = Photo.__table__
    next_sort = (
        sa_select(
            literal(photo_id),
            literal(str(user_id)),
            literal(post_id),
            literal(original_file_name),
            literal(stored_file_path),
            literal(memo),
            func.coalesce(func.max(t.c.sortOrder), 0) + 1,
            literal(now_ms()),
        )
        .where(t.c.postId == post_id)
    )
    stmt = insert(t).from_select(
        [
            t.c.id,
            t.c.userId,
            t.c.postId,
            t.c.originalFileName,
            t.c.storedFilePath,
            t.c.memo,
            t.c.sortOrder,
            t.c.createdAt,
        ],
        next_sort,
    )
    with session_scope(session) as s:
        s.execute(stmt)
        return s.get(Photo, photo_id).model_dump()


def delete_photo(photo_id: str, user_id: str, post_id: str) -> Optional[Dict[str, Any]]:
    """Remove one photo; remaining sortOrder values are left with the gap. Returns the deleted row."""
    with session_scope() as s:
        row = s.get(Photo, photo_id)
        if not row or row.user_id != str(user_id) or row.post_id != post_id:
            return None
        data = row.model_dump()
        s.delete(row)
        return data


def reorder_photos(user_id: str, post_id: str, ordered_photo_ids: Sequence[str]) -> List[Dict[str, Any]]:
    """
    Bulk reorder in one transaction: shift every photo of the post by
    REORDER_OFFSET to vacate 1..N, then assign sortOrder = index + 1 in the
    given order. Ids not belonging to the post are ignored; photos left out
    of the list keep their shifted position after the reordered ones.
    """
    uid = str(user_id)
    with session_scope() as s:
        s.execute(
            update(Photo)
            .where(Photo.user_id == uid, Photo.post_id == post_id)
            .values({Photo.sort_order: Photo.sort_order + REORDER_OFFSET})
            .execution_options(synchronize_session=False)
        )
        for index, photo_id in enumerate(ordered_photo_ids):
            s.execute(
                update(Photo)
                .where(Photo.id == photo_id, Photo.user_id == uid, Photo.post_id == post_id)
                .values({Photo.sort_order: index + 1})
                .execution_options(synchronize_session=False)
            )
    return list_photos_by_post(user_id, post_id)
