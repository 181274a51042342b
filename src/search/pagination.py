"""
Result Paginator.

Turns a result's pagination metadata into the page-number window shown
under the results:

    total_pages=20, current_page=10  ->  1 … 8 9 [10] 11 12 … 20

The window is centered on the current page and always holds exactly
min(max_visible_pages, total_pages) pages.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from config.constants import DEFAULT_PAGINATION_CONFIG
from core.logging import get_logger
from search.models import Pagination

logger = get_logger(__name__)


@dataclass(frozen=True)
class PageWindow:
    """Visible page numbers plus boundary affordances."""
    current_page: int
    total_pages: int
    pages: Tuple[int, ...] = field(default_factory=tuple)
    show_first: bool = False
    leading_ellipsis: bool = False
    show_last: bool = False
    trailing_ellipsis: bool = False
    has_prev: bool = False
    has_next: bool = False

    @property
    def needs_pagination(self) -> bool:
        """False when there is at most one page (nothing to render)."""
        return self.total_pages > 1

    @property
    def start_page(self) -> int:
        return self.pages[0] if self.pages else 0

    @property
    def end_page(self) -> int:
        return self.pages[-1] if self.pages else 0


def compute_page_window(
    pagination: Pagination,
    max_visible_pages: int = DEFAULT_PAGINATION_CONFIG.MAX_VISIBLE_PAGES,
) -> PageWindow:
    """
    Compute the visible page window for a result.

    Args:
        pagination: Pagination metadata from a SearchResult.
        max_visible_pages: Window size.

    Returns:
        PageWindow. For total_pages <= 1 the window signals that no
        pagination is needed.
    """
    total = max(0, pagination.total_pages)
    if total == 0:
        return PageWindow(current_page=1, total_pages=0)

    current = min(max(1, pagination.current_page), total)
    if total == 1:
        return PageWindow(current_page=1, total_pages=1, pages=(1,))

    start = max(1, current - max_visible_pages // 2)
    end = min(total, start + max_visible_pages - 1)
    # Truncated at the high end: slide the window back
    if end - start + 1 < max_visible_pages:
        start = max(1, end - max_visible_pages + 1)

    return PageWindow(
        current_page=current,
        total_pages=total,
        pages=tuple(range(start, end + 1)),
        show_first=start > 1,
        leading_ellipsis=start > 2,
        show_last=end < total,
        trailing_ellipsis=end < total - 1,
        has_prev=current > 1,
        has_next=current < total,
    )


def is_valid_page(page: int, total_pages: int) -> bool:
    """True if ``page`` lies within [1, total_pages]."""
    return isinstance(page, int) and not isinstance(page, bool) and 1 <= page <= total_pages


def result_range(pagination: Pagination) -> Tuple[int, int]:
    """
    1-based (first, last) product positions shown on the current page.

    Returns (0, 0) for an empty result.
    """
    if pagination.total_products <= 0:
        return (0, 0)
    limit = pagination.limit or DEFAULT_PAGINATION_CONFIG.DEFAULT_LIMIT
    first = (pagination.current_page - 1) * limit + 1
    last = min(pagination.current_page * limit, pagination.total_products)
    return (first, last)


class ResultPaginator:
    """
    Tracks the latest result's pagination and validates page requests.

    Out-of-range page requests are rejected locally: no dispatch, no error.
    """

    def __init__(self, max_visible_pages: int = DEFAULT_PAGINATION_CONFIG.MAX_VISIBLE_PAGES):
        self.max_visible_pages = max_visible_pages
        self._pagination = Pagination()

    @property
    def pagination(self) -> Pagination:
        return self._pagination

    def update(self, pagination: Optional[Pagination]) -> PageWindow:
        """Record new metadata and return its window."""
        self._pagination = pagination or Pagination()
        return self.window

    def reset(self) -> None:
        self._pagination = Pagination()

    @property
    def window(self) -> PageWindow:
        return compute_page_window(self._pagination, self.max_visible_pages)

    def can_go_to(self, page: int) -> bool:
        """True if ``page`` is a valid target other than the current page."""
        if not is_valid_page(page, self._pagination.total_pages):
            logger.debug(
                "Rejected out-of-range page",
                page=page,
                total_pages=self._pagination.total_pages,
            )
            return False
        return page != self._pagination.current_page

    def next_page(self) -> Optional[int]:
        window = self.window
        return window.current_page + 1 if window.has_next else None

    def prev_page(self) -> Optional[int]:
        window = self.window
        return window.current_page - 1 if window.has_prev else None
