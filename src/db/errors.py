"""
Storage-layer constraint failures, translated from sqlalchemy IntegrityError.

Callers treat every ConstraintViolation as a definitive rejection; nothing
here is retried. The subclass tells a duplicate key apart from the photo cap
and from an out-of-range value.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError

PHOTO_LIMIT_MESSAGE = "max_photos_per_post_exceeded"


class ConstraintViolation(Exception):
    code = "constraint_violation"

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.message = message
        self.detail = detail


class DuplicateError(ConstraintViolation):
    code = "duplicate"


class PhotoLimitExceeded(ConstraintViolation):
    code = PHOTO_LIMIT_MESSAGE


class InvalidValueError(ConstraintViolation):
    code = "invalid_value"


class MissingReferenceError(ConstraintViolation):
    code = "missing_reference"


def _driver_message(exc: IntegrityError) -> str:
    return str(getattr(exc, "orig", None) or exc)


def translate_integrity_error(exc: IntegrityError) -> ConstraintViolation:
    msg = _driver_message(exc)
    if PHOTO_LIMIT_MESSAGE in msg:
        return PhotoLimitExceeded(f"{PHOTO_LIMIT_MESSAGE}: a post holds at most 20 photos", msg)
    if "UNIQUE constraint failed" in msg or "duplicate key" in msg:
        return DuplicateError(f"duplicate value ({msg})", msg)
    if "FOREIGN KEY constraint failed" in msg or "foreign key" in msg:
        return MissingReferenceError(f"referenced row does not exist ({msg})", msg)
    if "CHECK constraint failed" in msg or "NOT NULL constraint failed" in msg:
        return InvalidValueError(f"invalid value ({msg})", msg)
    return ConstraintViolation(msg, msg)


@contextmanager
def constraint_guard() -> Iterator[None]:
    """Re-raise IntegrityError from the wrapped block as a ConstraintViolation."""
    try:
        yield
    except IntegrityError as e:
        raise translate_integrity_error(e) from e
