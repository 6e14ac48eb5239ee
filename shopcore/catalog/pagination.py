"""
Deterministic page slicing.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar

from shopcore.utils.logger import get_logger

logger = get_logger("catalog.pagination")

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    page: int               # 1-based, after clamping
    page_size: int
    total_count: int
    total_pages: int
    start_index: int        # 0-based index of the first item on the page
    end_index: int          # exclusive

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def total_pages(count: int, page_size: int) -> int:
    """ceil(count / page_size), never less than 1."""
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, pages: int) -> int:
    return min(max(1, page), pages)


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """
    Slice `items` into the requested 1-based page.

    Out-of-range pages clamp into [1, total_pages]. A page_size below 1 is
    treated as 1.
    """
    if page_size < 1:
        logger.warning(f"Invalid page size {page_size}, using 1")
        page_size = 1

    count = len(items)
    pages = total_pages(count, page_size)
    current = clamp_page(page, pages)
    start = (current - 1) * page_size
    end = min(start + page_size, count)

    return Page(
        items=list(items[start:end]),
        page=current,
        page_size=page_size,
        total_count=count,
        total_pages=pages,
        start_index=start,
        end_index=end,
    )
