"""
Learning samples and the per-category style profile learned from them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from src.db.engine import session_scope
from src.db.models import LearningSample, StyleProfile, now_ms
from src.store.base import dump, new_id, upsert_by_natural_key


def create_learning_sample(
    user_id: str,
    category_id: str,
    source_type: str,
    raw_text: str,
    source_url: Optional[str] = None,
    file_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    source_type 'url' keeps only source_url, 'file' keeps only file_name.
    Text outside 200..200000 chars or an unknown source_type raises
    InvalidValueError from the CHECK constraints.
    """
    row = LearningSample(
        id=new_id(),
        user_id=str(user_id),
        category_id=category_id,
        source_type=source_type,
        source_url=source_url if source_type == "url" else None,
        file_name=file_name if source_type == "file" else None,
        raw_text=raw_text,
        created_at=now_ms(),
    )
    with session_scope() as s:
        s.add(row)
        s.flush()
        return row.model_dump()


def count_learning_samples_for_category(user_id: str, category_id: str) -> int:
    stmt = select(func.count()).select_from(LearningSample).where(
        LearningSample.user_id == str(user_id),
        LearningSample.category_id == category_id,
    )
    with session_scope() as s:
        return int(s.exec(stmt).one() or 0)


def list_learning_samples_for_category(user_id: str, category_id: str) -> List[Dict[str, Any]]:
    stmt = (
        select(LearningSample)
        .where(LearningSample.user_id == str(user_id), LearningSample.category_id == category_id)
        .order_by(LearningSample.created_at.desc())
    )
    with session_scope() as s:
        return [r.model_dump() for r in s.exec(stmt).all()]


def delete_learning_sample(sample_id: str, user_id: str) -> bool:
    with session_scope() as s:
        row = s.get(LearningSample, sample_id)
        if not row or row.user_id != str(user_id):
            return False
        s.delete(row)
        return True


# ── style profile ──────────────────────────────────────────────────────────

def get_style_profile(user_id: str, category_id: str) -> Optional[Dict[str, Any]]:
    stmt = select(StyleProfile).where(
        StyleProfile.user_id == str(user_id),
        StyleProfile.category_id == category_id,
    )
    with session_scope() as s:
        return dump(s.exec(stmt).first())


def upsert_style_profile(
    user_id: str,
    category_id: str,
    profile_json: str,
    sample_count: int,
    session: Session | None = None,
) -> Dict[str, Any]:
    return upsert_by_natural_key(
        StyleProfile,
        key={"user_id": str(user_id), "category_id": category_id},
        payload={"profile_json": profile_json, "sample_count": sample_count},
        session=session,
    )
