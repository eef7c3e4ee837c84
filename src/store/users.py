"""
User accounts. Returned dicts are "safe" users: the password hash never
leaves this module.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlmodel import select

from src.auth.password import hash_password, verify_password
from src.db.engine import session_scope
from src.db.errors import DuplicateError
from src.db.models import User, now_iso


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(email: str, password: str, name: str = "") -> Dict[str, Any]:
    """Raises DuplicateError("Email already in use") for a taken email, ValueError for an empty password."""
    email = _normalize_email(email)
    if not email:
        raise ValueError("email cannot be empty")
    now = now_iso()
    row = User(
        email=email,
        password_hash=hash_password(password),
        name=(name or "").strip(),
        created_at=now,
        updated_at=now,
    )
    with session_scope() as s:
        if s.exec(select(User.id).where(User.email == email)).first() is not None:
            raise DuplicateError("Email already in use")
        s.add(row)
        s.flush()
        return row.to_safe_dict()


def authenticate_user(email: str, password: str) -> Optional[Dict[str, Any]]:
    with session_scope() as s:
        row = s.exec(select(User).where(User.email == _normalize_email(email))).first()
        if row is None or not verify_password(password, row.password_hash):
            return None
        return row.to_safe_dict()


def get_user_by_id(user_id: int) -> Optional[Dict[str, Any]]:
    with session_scope() as s:
        row = s.get(User, int(user_id))
        return row.to_safe_dict() if row else None


def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    with session_scope() as s:
        row = s.exec(select(User).where(User.email == _normalize_email(email))).first()
        return row.to_safe_dict() if row else None
