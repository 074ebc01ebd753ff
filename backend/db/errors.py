"""Database error helpers."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"


def _error_text(error: IntegrityError) -> str:
    return str(getattr(error, "orig", None) or error).lower()


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError comes from a unique constraint."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = _error_text(error)
    return "duplicate key" in message or "unique constraint" in message


def violated_columns(error: IntegrityError, candidates: Iterable[str]) -> list[str]:
    """Return the candidate column names mentioned by a unique violation.

    PostgreSQL names the constraint (``ix_users_email``), SQLite names the
    column (``users.email``); both contain the column name.
    """
    if not is_unique_violation(error):
        return []
    message = _error_text(error)
    return [column for column in candidates if column in message]


__all__ = ["is_unique_violation", "violated_columns"]
