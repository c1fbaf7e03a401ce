"""
Excluded-pattern rules for codes.

One definition serves both the bulk import (Python predicate) and the
allocation query (SQL expression). Both are built from the constants below.

A value is ineligible when it:
- starts with "!" (chat command text pasted into the codes file)
- contains "addcode" (admin command text)
- is shorter than MIN_CODE_LENGTH characters

The import is stricter still: an entry with "!" anywhere is dropped.
"""

from typing import Optional

from sqlalchemy import ColumnElement, and_, func
from sqlalchemy.orm import InstrumentedAttribute

EXCLUDED_PREFIX = "!"
EXCLUDED_MARKER = "addcode"
MIN_CODE_LENGTH = 3


def is_excluded(value: Optional[str]) -> bool:
    """
    >>> is_excluded("!help")
    True
    >>> is_excluded("XY")
    True
    >>> is_excluded("ABC123")
    False
    """
    if value is None:
        return True
    return (
        value.startswith(EXCLUDED_PREFIX)
        or EXCLUDED_MARKER in value
        or len(value) < MIN_CODE_LENGTH
    )


def is_importable(entry: str) -> bool:
    """Import filter for an already-trimmed entry."""
    if not entry or EXCLUDED_PREFIX in entry:
        return False
    return not is_excluded(entry)


def eligible_clause(column: InstrumentedAttribute) -> ColumnElement[bool]:
    """
    SQL form of `not is_excluded(column)`.

    substr/replace are case-sensitive on SQLite and PostgreSQL alike, which
    LIKE is not.
    """
    return and_(
        func.substr(column, 1, len(EXCLUDED_PREFIX)) != EXCLUDED_PREFIX,
        func.replace(column, EXCLUDED_MARKER, "") == column,
        func.length(column) >= MIN_CODE_LENGTH,
    )
