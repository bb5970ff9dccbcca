"""
Predicate helpers.

Typed building blocks for the "contains" and chain filters every search
query uses. Wildcards in user input are escaped, so patterns always
match literally.
"""

from collections.abc import Iterable, Sequence

from sqlalchemy import and_, true
from sqlalchemy.sql.elements import ColumnElement


def contains(column, pattern: str) -> ColumnElement[bool]:
    """Literal substring predicate (LIKE %pattern% with escaping)."""
    return column.contains(pattern, autoescape=True)


def contains_all(column, patterns: Sequence[str]) -> ColumnElement[bool]:
    """
    Conjunction of literal substring predicates, one per pattern.

    Args:
        column: Column to match
        patterns: Literal substrings, all of which must be present

    Returns:
        Combined predicate (always true for an empty pattern list)
    """
    if not patterns:
        return true()
    return and_(*(contains(column, p) for p in patterns))


def in_chains(column, chains: Iterable[str] | None) -> ColumnElement[bool] | None:
    """
    Optional chain restriction.

    Returns:
        IN-list predicate, or None when no chain filter is requested
    """
    if chains is None:
        return None
    return column.in_(list(chains))


def where_all(*conditions: ColumnElement[bool] | None) -> list[ColumnElement[bool]]:
    """Drop absent (None) optional conditions."""
    return [c for c in conditions if c is not None]
