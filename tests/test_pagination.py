"""
Tests for page-link generation.
"""

from types import SimpleNamespace

import pytest

from databridge.core.pagination import (
    ELLIPSIS,
    Page,
    can_change_page,
    page_links,
    render_links,
)

E = ELLIPSIS


class TestPageLinks:
    """Tests for page_links function."""

    @pytest.mark.parametrize("page, total, expected", [
        (1, 10, [1, 2, 3, 4, E, 10]),
        (2, 10, [1, 2, 3, 4, E, 10]),
        (5, 10, [1, E, 4, 5, 6, E, 10]),
        (9, 10, [1, E, 7, 8, 9, 10]),
        (10, 10, [1, E, 7, 8, 9, 10]),
    ])
    def test_collapsed_links(self, page, total, expected):
        assert page_links(page, total) == expected

    def test_all_pages_when_seven_or_fewer(self):
        assert page_links(3, 7) == [1, 2, 3, 4, 5, 6, 7]
        assert page_links(1, 1) == [1]

    def test_no_pages(self):
        assert page_links(1, 0) == []

    def test_eight_pages(self):
        assert page_links(1, 8) == [1, 2, 3, 4, E, 8]

    def test_first_and_last_always_present(self):
        for page in range(1, 21):
            links = page_links(page, 20)
            assert links[0] == 1
            assert links[-1] == 20
            assert page in links

    def test_render_links(self):
        assert render_links(5, 10) == "1 … 4 [5] 6 … 10"

    def test_ellipsis_repr(self):
        assert repr(ELLIPSIS) == "ELLIPSIS"


class TestPageNavigation:
    """Tests for page bounds."""

    def test_can_change_page(self):
        assert can_change_page(1, 5)
        assert can_change_page(5, 5)
        assert not can_change_page(0, 5)
        assert not can_change_page(6, 5)

    def test_page_from_response(self):
        response = SimpleNamespace(page=2, page_size=50, total_count=120, total_pages=3)

        page = Page.from_response(response)

        assert page.has_previous
        assert page.has_next
        assert page.links == [1, 2, 3]

    def test_last_page_has_no_next(self):
        page = Page(page=3, page_size=50, total_count=120, total_pages=3)

        assert not page.has_next
