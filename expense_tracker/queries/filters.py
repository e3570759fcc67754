"""
Filter Predicate Builder

Turns loosely-typed query parameters (as they arrive from a query string)
into a TransactionFilter that every record store can evaluate.

DESIGN DECISION: Filters degrade gracefully. A value that cannot be
understood (an unknown type, an unparseable date) is dropped and logged
rather than turned into an error, so a bad query string still lists data.
"""

from datetime import date, datetime
from typing import Optional, Union

import structlog

from expense_tracker.models.transaction import TransactionFilter, TransactionType


logger = structlog.get_logger(__name__)

DateLike = Union[date, datetime, str, None]


def build_filter(
    type: Optional[str] = None,
    category: Optional[str] = None,
    start_date: DateLike = None,
    end_date: DateLike = None,
    search: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> TransactionFilter:
    """
    Build a predicate from raw query parameters.

    Args:
        type: "income" or "expense"; anything else is ignored
        category: exact category name; an unknown name matches nothing
        start_date: inclusive lower bound (date or ISO string)
        end_date: inclusive upper bound (date or ISO string)
        search: case-insensitive substring of the title
        owner_id: restrict to one owner

    Returns:
        TransactionFilter with only the usable constraints set
    """
    return TransactionFilter(
        type=_parse_type(type),
        category=_clean(category),
        start_date=_parse_date(start_date, "start_date"),
        end_date=_parse_date(end_date, "end_date"),
        search=_fold(search),
        owner_id=_clean(owner_id),
    )


def owner_filter(owner_id: Optional[str] = None) -> TransactionFilter:
    """Predicate used by the aggregates: everything, or one owner's records."""
    return TransactionFilter(owner_id=_clean(owner_id))


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _fold(value: Optional[str]) -> Optional[str]:
    value = _clean(value)
    return value.casefold() if value else None


def _parse_type(value: Optional[str]) -> Optional[TransactionType]:
    if isinstance(value, TransactionType):
        return value
    value = _clean(value)
    if value is None:
        return None
    try:
        return TransactionType(value)
    except ValueError:
        logger.warning("filter_type_ignored", value=value)
        return None


def _parse_date(value: DateLike, field: str) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.warning("filter_date_ignored", field=field, value=text)
        return None
