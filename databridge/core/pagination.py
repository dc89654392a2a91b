"""
Pagination

Page-link generation for paged application listings.
"""

from dataclasses import dataclass
from typing import Any

# Above this many pages, links collapse around the current page
MAX_FULL_PAGES = 7


class _Ellipsis:
    """Marker for a gap in the page links."""

    _instance: "_Ellipsis | None" = None

    def __new__(cls) -> "_Ellipsis":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ELLIPSIS"

    def __str__(self) -> str:
        return "…"


ELLIPSIS = _Ellipsis()

PageLink = int | _Ellipsis


def page_links(page: int, total_pages: int) -> list[PageLink]:
    """
    Build the page links to display.

    With seven pages or fewer every page is listed. Otherwise the first
    and last pages are always shown, with a window of three pages around
    the current one and an ellipsis for each gap.

    Args:
        page: Current page (1-indexed)
        total_pages: Number of pages

    Returns:
        Page numbers and ``ELLIPSIS`` markers, in display order

    Example:
        >>> page_links(5, 10)
        [1, ELLIPSIS, 4, 5, 6, ELLIPSIS, 10]
    """
    if total_pages <= 0:
        return []

    if total_pages <= MAX_FULL_PAGES:
        return list(range(1, total_pages + 1))

    links: list[PageLink] = [1]

    start = max(2, page - 1)
    end = min(total_pages - 1, page + 1)

    # Keep the window three pages wide at either edge
    if end - start < 2:
        if start == 2:
            end = min(4, total_pages - 1)
        else:
            start = max(2, total_pages - 3)

    if start > 2:
        links.append(ELLIPSIS)

    links.extend(range(start, end + 1))

    if end < total_pages - 1:
        links.append(ELLIPSIS)

    links.append(total_pages)
    return links


def can_change_page(new_page: int, total_pages: int) -> bool:
    """Out-of-range page requests are ignored."""
    return 1 <= new_page <= total_pages


def render_links(page: int, total_pages: int) -> str:
    """Text rendering with the current page in brackets."""
    parts = []
    for link in page_links(page, total_pages):
        if link is ELLIPSIS:
            parts.append(str(ELLIPSIS))
        elif link == page:
            parts.append(f"[{link}]")
        else:
            parts.append(str(link))
    return " ".join(parts)


@dataclass(frozen=True)
class Page:
    """Position within a paged listing."""

    page: int
    page_size: int
    total_count: int
    total_pages: int

    @classmethod
    def from_response(cls, response: Any) -> "Page":
        return cls(
            page=response.page,
            page_size=response.page_size,
            total_count=response.total_count,
            total_pages=response.total_pages,
        )

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def links(self) -> list[PageLink]:
        return page_links(self.page, self.total_pages)
