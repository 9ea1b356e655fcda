"""
Pagination and the uniform result envelope.

One normalization rule applies on every call path:

- a non-positive page size becomes the configured default;
- a negative page index is clamped to ``0``;
- an index past the last page yields an empty page, never an error.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, NamedTuple, TypeVar

from .config import DEFAULT_PAGE_SIZE

T = TypeVar("T")


class PageRequest(NamedTuple):
    index: int
    size: int

    @property
    def offset(self) -> int:
        return self.index * self.size


def normalize_page(
    page_index: int | None,
    page_size: int | None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> PageRequest:
    """Apply the page clamp rule."""
    size = page_size if page_size is not None and page_size > 0 else default_page_size
    index = max(0, page_index or 0)
    return PageRequest(index=index, size=size)


def page_count(total_size: int, page_size: int) -> int:
    return math.ceil(total_size / page_size) if total_size > 0 else 0


@dataclass(frozen=True)
class PaginationResult(Generic[T]):
    """
    One page of results plus the bookkeeping to fetch the others.

    Attributes:
        data: Records on this page, in sort order.
        total_size: Number of records matching the filter.
        total_pages: ``ceil(total_size / page_size)``.
        page_index: The (normalized, 0-based) page returned.
        page_size: The (normalized) page size.
    """

    data: list[T] = field(default_factory=list)
    total_size: int = 0
    total_pages: int = 0
    page_index: int = 0
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def assemble(
        cls, data: list[T], total_size: int, page: PageRequest
    ) -> PaginationResult[T]:
        """Wrap an already sliced page."""
        return cls(
            data=data,
            total_size=total_size,
            total_pages=page_count(total_size, page.size),
            page_index=page.index,
            page_size=page.size,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": list(self.data),
            "totalSize": self.total_size,
            "totalPage": self.total_pages,
            "pageIndex": self.page_index,
            "pageSize": self.page_size,
        }


def paginate(
    items: Sequence[T],
    page_index: int | None = 0,
    page_size: int | None = 0,
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginationResult[T]:
    """Slice a fully filtered and sorted sequence into one page."""
    page = normalize_page(page_index, page_size, default_page_size)
    window = list(items[page.offset : page.offset + page.size])
    return PaginationResult.assemble(window, len(items), page)
