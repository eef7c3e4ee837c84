"""
Plagiarism checks and SEO analyses: append-only history tied to a post
version. "Latest" is the newest createdAt, ties broken by insertion order.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from sqlalchemy import literal_column
from sqlmodel import Session, select

from src.db.engine import session_scope
from src.db.models import PlagiarismCheck, SeoAnalysis, now_ms
from src.store.base import new_id

_ROWID_DESC = literal_column("rowid").desc()


def _plagiarism_dict(row: Optional[PlagiarismCheck]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    data = row.model_dump()
    data["compared_source_ids"] = row.get_compared_source_ids()
    data["passed"] = bool(row.passed)
    return data


def _seo_dict(row: Optional[SeoAnalysis]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    data = row.model_dump()
    data["suggestions"] = row.get_suggestions()
    return data


# ── plagiarism ─────────────────────────────────────────────────────────────

def create_plagiarism_check(
    user_id: str,
    post_id: str,
    version_id: str,
    result: Dict[str, Any],
    session: Session | None = None,
) -> Dict[str, Any]:
    """result is the output of check_plagiarism()."""
    row = PlagiarismCheck(
        id=new_id(),
        user_id=str(user_id),
        post_id=post_id,
        version_id=version_id,
        similarity_score=int(result["similarity_score"]),
        compared_source_ids=json.dumps(list(result["compared_source_ids"]), ensure_ascii=False),
        passed=1 if result["passed"] else 0,
        created_at=now_ms(),
    )
    with session_scope(session) as s:
        s.add(row)
        s.flush()
        return _plagiarism_dict(row)


def get_latest_plagiarism_check(
    user_id: str,
    post_id: str,
    version_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    stmt = select(PlagiarismCheck).where(
        PlagiarismCheck.user_id == str(user_id),
        PlagiarismCheck.post_id == post_id,
    )
    if version_id:
        stmt = stmt.where(PlagiarismCheck.version_id == version_id)
    stmt = stmt.order_by(PlagiarismCheck.created_at.desc(), _ROWID_DESC).limit(1)
    with session_scope() as s:
        return _plagiarism_dict(s.exec(stmt).first())


def get_plagiarism_check_by_id(check_id: str) -> Optional[Dict[str, Any]]:
    with session_scope() as s:
        return _plagiarism_dict(s.get(PlagiarismCheck, check_id))


# ── SEO ────────────────────────────────────────────────────────────────────

def create_seo_analysis(
    user_id: str,
    post_id: str,
    version_id: str,
    result: Dict[str, Any],
    session: Session | None = None,
) -> Dict[str, Any]:
    """result is the output of analyze_seo()."""
    row = SeoAnalysis(
        id=new_id(),
        user_id=str(user_id),
        post_id=post_id,
        version_id=version_id,
        keyword_density_score=int(result["keyword_density_score"]),
        title_optimization_score=int(result["title_optimization_score"]),
        meta_description_score=int(result["meta_description_score"]),
        readability_score=int(result["readability_score"]),
        internal_links_score=int(result["internal_links_score"]),
        overall_score=int(result["overall_score"]),
        suggestions=json.dumps(list(result["suggestions"]), ensure_ascii=False),
        created_at=now_ms(),
    )
    with session_scope(session) as s:
        s.add(row)
        s.flush()
        return _seo_dict(row)


def get_latest_seo_analysis(
    user_id: str,
    post_id: str,
    version_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    stmt = select(SeoAnalysis).where(
        SeoAnalysis.user_id == str(user_id),
        SeoAnalysis.post_id == post_id,
    )
    if version_id:
        stmt = stmt.where(SeoAnalysis.version_id == version_id)
    stmt = stmt.order_by(SeoAnalysis.created_at.desc(), _ROWID_DESC).limit(1)
    with session_scope() as s:
        return _seo_dict(s.exec(stmt).first())


def get_seo_analysis_by_id(analysis_id: str) -> Optional[Dict[str, Any]]:
    with session_scope() as s:
        return _seo_dict(s.get(SeoAnalysis, analysis_id))
