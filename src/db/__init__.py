"""
src/db: database engine, session factory, SQLModel models and
constraint-error translation.

Usage:
    from src.db import get_engine, init_db
    from src.db.models import Category, Post, Photo, ...
"""

from src.db.engine import get_engine, init_db, reset_engine, session_scope
from src.db.errors import (
    ConstraintViolation,
    DuplicateError,
    InvalidValueError,
    MissingReferenceError,
    PhotoLimitExceeded,
    translate_integrity_error,
)

__all__ = [
    "get_engine",
    "init_db",
    "reset_engine",
    "session_scope",
    "ConstraintViolation",
    "DuplicateError",
    "InvalidValueError",
    "MissingReferenceError",
    "PhotoLimitExceeded",
    "translate_integrity_error",
]
