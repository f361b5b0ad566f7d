"""Helpers for working with database/SQLAlchemy errors."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

_UNIQUE_VIOLATION_SQLSTATES = {"23505"}


def is_unique_violation(
    exc: SQLAlchemyError, constraint_identifier: str | None = None
) -> bool:
    """Return ``True`` if ``exc`` was raised by a unique constraint.

    Parameters
    ----------
    exc:
        The SQLAlchemy exception to inspect.
    constraint_identifier:
        Optional substring (such as a constraint or column name) that must be
        present in the original database error message. When omitted, any
        unique violation will match.
    """

    orig = getattr(exc, "orig", None)
    if orig is None:
        return False

    message = str(orig).lower()
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _UNIQUE_VIOLATION_SQLSTATES:
        if constraint_identifier is None:
            return True
        constraint_name = getattr(orig, "constraint_name", None) or ""
        needle = constraint_identifier.lower()
        return needle in message or needle in constraint_name.lower()

    if "unique" not in message:
        return False
    if constraint_identifier and constraint_identifier.lower() not in message:
        return False
    return True
