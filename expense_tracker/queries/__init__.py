"""Query building, pagination and aggregation package."""

from expense_tracker.queries.aggregation import (
    breakdown_by_category,
    sort_breakdown,
    summarize,
)
from expense_tracker.queries.filters import build_filter, owner_filter
from expense_tracker.queries.pagination import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    PageRequest,
    build_pagination,
    paginate,
)

__all__ = [
    "DEFAULT_LIMIT",
    "DEFAULT_PAGE",
    "PageRequest",
    "breakdown_by_category",
    "build_filter",
    "build_pagination",
    "owner_filter",
    "paginate",
    "sort_breakdown",
    "summarize",
]
