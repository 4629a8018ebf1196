"""
core.domain.pagination — Page/size slicing shared by report and user search.

Every paginated endpoint returns a ``PaginatedResult``::

    {
        "page_num": 1,
        "page_size": 10,
        "total_items": 42,
        "total_pages": 5,
        "items": [...]
    }

A page past the last one yields an empty ``items`` list with the real
totals; it is not an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from django.db.models import QuerySet

T = TypeVar("T")

DEFAULT_PAGE_NUM = 1
DEFAULT_PAGE_SIZE = 10


def compute_total_pages(total_items: int, page_size: int) -> int:
    """Return ``ceil(total_items / page_size)``; an empty result has 0 pages."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1.")
    if total_items <= 0:
        return 0
    return math.ceil(total_items / page_size)


@dataclass
class PaginatedResult(Generic[T]):
    """One page of a filtered, ordered result set."""

    page_num: int
    page_size: int
    total_items: int
    items: Sequence[T] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return compute_total_pages(self.total_items, self.page_size)


def paginate(
    queryset: QuerySet,
    page_num: int = DEFAULT_PAGE_NUM,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginatedResult:
    """
    Slice an already filtered and ordered queryset into one page.

    Parameters
    ----------
    queryset : QuerySet
        Must carry a deterministic ``order_by``.
    page_num : int
        1-based page index (``>= 1``).
    page_size : int
        Rows per page (``>= 1``).

    Returns
    -------
    PaginatedResult
        ``total_items`` is the filtered count, independent of the page.

    Raises
    ------
    ValueError
        If ``page_num`` or ``page_size`` is below 1.  Request serializers
        reject such values before this point.
    """
    if page_num < 1:
        raise ValueError("page_num must be at least 1.")
    if page_size < 1:
        raise ValueError("page_size must be at least 1.")

    total_items = queryset.count()
    offset = (page_num - 1) * page_size
    if offset >= total_items:
        items: list = []
    else:
        items = list(queryset[offset:offset + page_size])

    return PaginatedResult(
        page_num=page_num,
        page_size=page_size,
        total_items=total_items,
        items=items,
    )
