"""Tests for page requests and page descriptors."""

from __future__ import annotations

import pytest

from batch_admin.core.errors import InvalidPageRequest
from batch_admin.core.pagination import MAX_PAGE_SIZE, PageRequest, check_window, paginate


class TestPageRequest:
    def test_defaults(self) -> None:
        request = PageRequest.of()
        assert request.page == 0
        assert request.size == 20
        assert (request.offset, request.limit) == (0, 20)

    def test_configured_default_size(self) -> None:
        assert PageRequest.of(default_size=5).size == 5

    def test_offset_is_page_times_size(self) -> None:
        request = PageRequest.of(page=3, size=7)
        assert request.offset == 21
        assert request.limit == 7

    def test_size_is_clamped(self) -> None:
        assert PageRequest.of(size=MAX_PAGE_SIZE * 10).size == MAX_PAGE_SIZE

    @pytest.mark.parametrize(("page", "size"), [(-1, 10), (0, 0), (0, -5)], ids=["negative-page", "zero", "negative"])
    def test_rejects_invalid_values(self, page: int, size: int) -> None:
        with pytest.raises(InvalidPageRequest):
            PageRequest.of(page, size)


class TestPaginate:
    def test_first_page(self) -> None:
        page = paginate(0, 2, 3, ["a", "b"])
        assert page.content == ["a", "b"]
        assert page.page_number == 0
        assert page.page_size == 2
        assert page.total_elements == 3
        assert page.total_pages == 2

    def test_last_partial_page(self) -> None:
        page = paginate(2, 2, 3, ["c"])
        assert page.content == ["c"]
        assert page.page_number == 1
        assert page.total_pages == 2

    def test_truncates_to_limit(self) -> None:
        page = paginate(0, 2, 10, ["a", "b", "c", "d"])
        assert page.content == ["a", "b"]

    def test_truncates_to_what_the_count_admits(self) -> None:
        # the list grew between the count and the fetch
        page = paginate(0, 10, 2, ["a", "b", "c"])
        assert page.content == ["a", "b"]

    def test_offset_past_total_is_empty(self) -> None:
        page = paginate(40, 20, 3, ["stale"])
        assert page.content == []
        assert page.page_number == 2
        assert page.total_pages == 1

    def test_empty_collection(self) -> None:
        page = paginate(0, 20, 0, [])
        assert page.content == []
        assert page.total_pages == 0

    def test_rejects_negative_total(self) -> None:
        with pytest.raises(InvalidPageRequest):
            paginate(0, 10, -1, [])

    def test_rejects_zero_limit(self) -> None:
        with pytest.raises(InvalidPageRequest):
            paginate(0, 0, 5, [])


def test_check_window_rejects_negative_offset() -> None:
    with pytest.raises(InvalidPageRequest):
        check_window(-1, 10)
