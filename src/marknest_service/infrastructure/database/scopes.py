"""Explicit soft-delete query modifiers.

Nothing filters trashed rows implicitly: every query over a soft-deletable
model states which rows it wants by passing its statement through one of
these helpers.
"""

from sqlalchemy import Select


def exclude_trashed(stmt: Select, model) -> Select:
    """Only live rows."""
    return stmt.where(model.deleted_at.is_(None))


def only_trashed(stmt: Select, model) -> Select:
    """Only soft-deleted rows."""
    return stmt.where(model.deleted_at.is_not(None))


def with_trashed(stmt: Select, model) -> Select:
    """Live and soft-deleted rows alike."""
    return stmt
