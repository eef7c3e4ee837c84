"""
Crawl sources (third-party snippets about the post's location) and the
one-per-post crawl summary that aggregates them.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from src.db.engine import session_scope
from src.db.models import CrawlSource, CrawlSummary, now_ms
from src.store.base import dump, new_id, upsert_by_natural_key


def insert_crawl_sources(
    user_id: str,
    post_id: str,
    sources: Iterable[Dict[str, Any]],
    session: Session | None = None,
) -> List[Dict[str, Any]]:
    """
    Insert all sources in one transaction; any invalid row rolls back the batch.
    Each source: provider, snippet_text, optional source_url / rating.
    """
    now = now_ms()
    rows = [
        CrawlSource(
            id=new_id(),
            user_id=str(user_id),
            post_id=post_id,
            provider=src["provider"],
            source_url=src.get("source_url"),
            snippet_text=src["snippet_text"],
            rating=src.get("rating"),
            created_at=now,
        )
        for src in sources
    ]
    with session_scope(session) as s:
        s.add_all(rows)
        s.flush()
        return [r.model_dump() for r in rows]


def replace_crawl_sources(
    user_id: str,
    post_id: str,
    sources: Iterable[Dict[str, Any]],
    summary: Dict[str, Any],
) -> Dict[str, Any]:
    """Swap the post's sources for a fresh batch and upsert its summary, atomically."""
    with session_scope() as s:
        s.execute(
            delete(CrawlSource).where(
                CrawlSource.user_id == str(user_id),
                CrawlSource.post_id == post_id,
            )
        )
        inserted = insert_crawl_sources(user_id, post_id, sources, session=s)
        saved_summary = upsert_crawl_summary(
            user_id,
            post_id,
            total_count=summary["total_count"],
            average_rating=summary.get("average_rating"),
            summary_text=summary["summary_text"],
            session=s,
        )
    return {"sources": inserted, "summary": saved_summary}


def list_crawl_sources(user_id: str, post_id: str) -> List[Dict[str, Any]]:
    stmt = (
        select(CrawlSource)
        .where(CrawlSource.user_id == str(user_id), CrawlSource.post_id == post_id)
        .order_by(CrawlSource.created_at.asc())
    )
    with session_scope() as s:
        return [r.model_dump() for r in s.exec(stmt).all()]


def upsert_crawl_summary(
    user_id: str,
    post_id: str,
    total_count: int,
    average_rating: Optional[float],
    summary_text: str,
    session: Session | None = None,
) -> Dict[str, Any]:
    return upsert_by_natural_key(
        CrawlSummary,
        key={"user_id": str(user_id), "post_id": post_id},
        payload={
            "total_count": total_count,
            "average_rating": average_rating,
            "summary_text": summary_text,
        },
        session=session,
    )


def get_crawl_summary_by_post(user_id: str, post_id: str) -> Optional[Dict[str, Any]]:
    stmt = select(CrawlSummary).where(
        CrawlSummary.user_id == str(user_id),
        CrawlSummary.post_id == post_id,
    )
    with session_scope() as s:
        return dump(s.exec(stmt).first())
