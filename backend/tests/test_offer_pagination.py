from __future__ import annotations

import math

import pytest

from offer_print.normalizer import normalize_equipment
from offer_print.pagination import PAGE_CAPACITY, item_positions, plan_pages, split_overflowing


def _views(n: int):
    return [normalize_equipment({"id": i, "name": f"item{i}"}) for i in range(n)]


@pytest.mark.parametrize("n", [0, 1, 2, 3, 4, 5, 9, 20])
def test_page_count_and_order(n):
    views = _views(n)
    pages = plan_pages(views)
    assert len(pages) == max(1, math.ceil(n / PAGE_CAPACITY))
    flattened = [v for page in pages for v in page.items]
    assert flattened == views
    assert all(len(page.items) <= PAGE_CAPACITY for page in pages)


@pytest.mark.parametrize("n", [0, 1, 3, 6])
def test_first_and_last_flags(n):
    pages = plan_pages(_views(n))
    assert [p.is_first for p in pages] == [i == 0 for i in range(len(pages))]
    assert [p.is_last for p in pages] == [i == len(pages) - 1 for i in range(len(pages))]
    assert [p.index for p in pages] == list(range(len(pages)))
    assert pages[-1].number == len(pages)


def test_zero_items_yield_single_first_and_last_page():
    (page,) = plan_pages([])
    assert page.items == ()
    assert page.is_first and page.is_last


def test_break_before_forces_new_page_and_keeps_order():
    views = _views(4)
    pages = plan_pages(views, break_before={1})
    assert [[v.name for v in p.items] for p in pages] == [["item0"], ["item1", "item2"], ["item3"]]


def test_split_overflowing_moves_last_item_of_overflowing_page():
    pages = plan_pages(_views(5))
    assert item_positions(pages) == [[0, 1], [2, 3], [4]]
    assert split_overflowing(pages, [1]) == frozenset({3})
    # a single-item last page sends its summary blocks to a trailing page
    assert split_overflowing(pages, [2]) == frozenset({5})
    assert split_overflowing(pages, [7]) == frozenset()

    replanned = plan_pages(_views(5), break_before=split_overflowing(pages, [1]))
    assert [[v.name for v in p.items] for p in replanned] == [["item0", "item1"], ["item2"], ["item3", "item4"]]


def test_single_item_page_before_the_last_cannot_shrink():
    pages = plan_pages(_views(4), break_before={1})
    assert item_positions(pages) == [[0], [1, 2], [3]]
    assert split_overflowing(pages, [0]) == frozenset()


def test_summary_break_adds_trailing_page_without_items():
    views = _views(3)
    pages = plan_pages(views, break_before={3})
    assert [[v.name for v in p.items] for p in pages] == [["item0", "item1"], ["item2"], []]
    assert [p.is_last for p in pages] == [False, False, True]
    assert pages[-1].is_summary_only
    assert not pages[1].is_summary_only
    # nothing left to move off a summary-only page
    assert split_overflowing(pages, [2]) == frozenset()


def test_summary_break_with_no_items():
    first = plan_pages([])
    assert split_overflowing(first, [0]) == frozenset({0})
    header, summary = plan_pages([], break_before={0})
    assert header.is_first and not header.is_last and not header.is_summary_only
    assert summary.is_last and summary.is_summary_only
