"""
src/store: data access for every BlogCraft entity.

Functions return plain dicts (or None / False when a row is absent) and
raise src.db.errors.ConstraintViolation subclasses on rejected writes.
Write functions that accept ``session=`` join the caller's transaction.
"""
