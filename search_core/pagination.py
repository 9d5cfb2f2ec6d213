# search_core/pagination.py
"""
Pagination helpers.

``pagination_range`` produces the compact page-button sequence:

    pagination_range(1, 10)  -> [1, 2, 3, "...", 10]
    pagination_range(6, 10)  -> [1, "...", 4, 5, 6, 7, 8, "...", 10]
    pagination_range(10, 10) -> [1, "...", 8, 9, 10]
"""

import math
from dataclasses import dataclass
from typing import List, Union

from config.constant import PAGINATION_ELLIPSIS, PAGINATION_WINDOW

PageItem = Union[int, str]


def pagination_range(current_page: int, total_pages: int,
                     window: int = PAGINATION_WINDOW) -> List[PageItem]:
    """
    Page 1, a window of ``window`` pages either side of the current page
    (clipped to 2..total-1), ellipsis markers over gaps, and the last page.
    """
    if total_pages <= 0:
        return []
    current = min(max(current_page, 1), total_pages)

    start = max(2, current - window)
    end = min(total_pages - 1, current + window)

    pages: List[PageItem] = [1]
    if start > 2:
        pages.append(PAGINATION_ELLIPSIS)
    pages.extend(range(start, end + 1))
    if end < total_pages - 1:
        pages.append(PAGINATION_ELLIPSIS)
        pages.append(total_pages)
    elif total_pages not in pages:
        pages.append(total_pages)
    return pages


@dataclass(frozen=True)
class PaginationInfo:
    current_page: int
    total_pages: int
    start_index: int
    end_index: int

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


def total_pages_for(total_items: int, page_size: int) -> int:
    if page_size <= 0 or total_items <= 0:
        return 0
    return math.ceil(total_items / page_size)


def calculate_pagination(total_items: int, page_size: int,
                         current_page: int) -> PaginationInfo:
    """Total pages plus the [start, end) slice for the current page."""
    total_pages = total_pages_for(total_items, page_size)
    current = min(max(current_page, 1), max(total_pages, 1))
    start = (current - 1) * page_size
    end = min(start + page_size, max(total_items, 0))
    return PaginationInfo(
        current_page=current,
        total_pages=total_pages,
        start_index=start,
        end_index=max(end, start),
    )


__all__ = [
    "PageItem",
    "PaginationInfo",
    "pagination_range",
    "total_pages_for",
    "calculate_pagination",
]
