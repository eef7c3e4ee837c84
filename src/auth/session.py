"""Table-backed login sessions.

A session token is 32 random bytes rendered as hex. Only its SHA-256
digest is stored (``sessions.token_hash``), together with the owning user
and an absolute expiry in epoch milliseconds. Every authenticated request
looks the token up; a row found past its expiry is deleted on the spot and
the token is treated as absent. ``purge_expired_sessions`` sweeps whatever
lazy deletion has not reached yet and runs once at startup.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from typing import Optional

from sqlalchemy import delete

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def _token_hash(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(user_id: int, max_age_seconds: Optional[int] = None) -> str:
    """Persist a new session for *user_id* and return the raw token."""
    from config.settings import settings
    from src.db.engine import session_scope
    from src.db.models import UserSession, now_ms

    max_age = max_age_seconds if max_age_seconds is not None else settings.auth.session_max_age_seconds
    token = secrets.token_hex(TOKEN_BYTES)
    now = now_ms()
    with session_scope() as s:
        s.add(UserSession(
            token_hash=_token_hash(token),
            user_id=int(user_id),
            expires_at=now + max_age * 1000,
            created_at=now,
        ))
    return token


def validate_session(token: Optional[str]) -> Optional[int]:
    """Return the user id for a live token, else None. Expired rows are removed."""
    if not token:
        return None
    from src.db.engine import session_scope
    from src.db.models import UserSession, now_ms

    with session_scope() as s:
        row = s.get(UserSession, _token_hash(token))
        if row is None:
            return None
        if row.expires_at <= now_ms():
            s.delete(row)
            logger.debug("expired session removed for user %s", row.user_id)
            return None
        return row.user_id


def delete_session(token: Optional[str]) -> bool:
    """Logout. Returns True when a row was removed."""
    if not token:
        return False
    from src.db.engine import session_scope
    from src.db.models import UserSession

    with session_scope() as s:
        row = s.get(UserSession, _token_hash(token))
        if row is None:
            return False
        s.delete(row)
        return True


def purge_expired_sessions() -> int:
    """Delete every expired session row. Returns the number removed."""
    from src.db.engine import session_scope
    from src.db.models import UserSession, now_ms

    with session_scope() as s:
        result = s.execute(delete(UserSession).where(UserSession.expires_at <= now_ms()))
        return result.rowcount or 0
