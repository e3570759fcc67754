"""
Pagination Engine

Page/limit arithmetic shared by every record store.
Pages are 1-based. Out-of-range pages are empty, never an error.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence, TypeVar

from expense_tracker.models.transaction import PaginationMeta


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """A normalized page request (page >= 1, limit >= 1)."""
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(
        cls,
        page: Any = None,
        limit: Any = None,
        default_limit: int = DEFAULT_LIMIT,
    ) -> "PageRequest":
        """
        Coerce raw page/limit values.

        Missing or non-numeric values fall back to the defaults;
        numbers below 1 are raised to 1.
        """
        return cls(
            page=_coerce_positive(page, DEFAULT_PAGE),
            limit=_coerce_positive(limit, default_limit),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def slice(self, records: Sequence[T]) -> list[T]:
        return list(records[self.offset:self.offset + self.limit])


def build_pagination(request: PageRequest, total: int) -> PaginationMeta:
    """Metadata for a page over a result set of `total` records."""
    return PaginationMeta(
        page=request.page,
        limit=request.limit,
        total=total,
        pages=math.ceil(total / request.limit) if total else 0,
    )


def paginate(
    records: Sequence[T],
    request: PageRequest,
) -> tuple[list[T], PaginationMeta]:
    """Slice an ordered, already-filtered result set."""
    return request.slice(records), build_pagination(request, len(records))


def _coerce_positive(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, number)
