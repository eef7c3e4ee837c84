"""
Shared helpers for the store modules: ids, row → dict, natural-key upsert.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, Type

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, SQLModel, select

from src.db.engine import session_scope
from src.db.models import now_ms


def new_id() -> str:
    return str(uuid.uuid4())


def dump(row: Optional[SQLModel]) -> Optional[Dict[str, Any]]:
    return row.model_dump() if row is not None else None


def upsert_by_natural_key(
    model: Type[SQLModel],
    key: Dict[str, Any],
    payload: Dict[str, Any],
    session: Session | None = None,
) -> Dict[str, Any]:
    """
    INSERT ... ON CONFLICT(<key columns>) DO UPDATE for the one-row-per-key
    tables (style_profiles, crawl_summaries, monetization_tips).

    On conflict only the payload columns and updatedAt change; id and
    createdAt keep the values of the first insert. Concurrent callers for
    the same key end up on the same row because the unique index arbitrates.
    """
    now = now_ms()

    def attr(name: str):
        return getattr(model, name)

    values = {attr("id"): new_id(), attr("created_at"): now, attr("updated_at"): now}
    values.update({attr(k): v for k, v in key.items()})
    values.update({attr(k): v for k, v in payload.items()})

    updates = {attr(k): v for k, v in payload.items()}
    updates[attr("updated_at")] = now

    stmt = (
        sqlite_insert(model)
        .values(values)
        .on_conflict_do_update(index_elements=[attr(k) for k in key], set_=updates)
    )
    lookup = (
        select(model)
        .where(*[attr(k) == v for k, v in key.items()])
        .execution_options(populate_existing=True)
    )
    with session_scope(session) as s:
        s.execute(stmt)
        row = s.exec(lookup).one()
        return row.model_dump()
