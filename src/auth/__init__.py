# Auth: password hashing, persisted session tokens
from src.auth.password import MIN_PASSWORD_LENGTH, hash_password, verify_password
from src.auth.session import (
    create_session,
    validate_session,
    delete_session,
    purge_expired_sessions,
)

__all__ = [
    "MIN_PASSWORD_LENGTH",
    "hash_password",
    "verify_password",
    "create_session",
    "validate_session",
    "delete_session",
    "purge_expired_sessions",
]
