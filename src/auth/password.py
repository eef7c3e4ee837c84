"""bcrypt password hashing for user accounts."""

import bcrypt

MIN_PASSWORD_LENGTH = 6


def hash_password(plain: str) -> str:
    """Return the bcrypt hash of *plain*; rejects passwords shorter than MIN_PASSWORD_LENGTH."""
    if not plain or len(plain) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False
