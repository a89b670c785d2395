"""Partition equipment into fixed-capacity pages."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .normalizer import EquipmentView

PAGE_CAPACITY = 2


@dataclass(frozen=True)
class Page:
    index: int
    items: tuple[EquipmentView, ...]
    is_first: bool
    is_last: bool

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def is_summary_only(self) -> bool:
        """Trailing page carrying only the financial, terms and footer blocks."""
        return self.is_last and not self.is_first and not self.items


def _chunk(views: Sequence[EquipmentView], capacity: int, break_before: frozenset[int]) -> list[list[EquipmentView]]:
    chunks: list[list[EquipmentView]] = []
    current: list[EquipmentView] = []
    for pos, view in enumerate(views):
        if current and (len(current) >= capacity or pos in break_before):
            chunks.append(current)
            current = []
        current.append(view)
    if current or not chunks:
        chunks.append(current)
    # a break after the last item moves the summary blocks onto a page of their own
    if len(views) in break_before:
        chunks.append([])
    return chunks


def plan_pages(
    views: Sequence[EquipmentView],
    *,
    capacity: int = PAGE_CAPACITY,
    break_before: Iterable[int] = (),
) -> list[Page]:
    """
    Consecutive chunks of at most `capacity` views, order preserved.
    `break_before` holds item positions forced to open a new page (used when a
    rendered page overflows its content band); position len(views) opens a trailing
    page with no items for the summary blocks. Zero views still yield one page.
    """
    chunks = _chunk(views, max(1, capacity), frozenset(break_before))
    last = len(chunks) - 1
    return [
        Page(index=i, items=tuple(chunk), is_first=i == 0, is_last=i == last)
        for i, chunk in enumerate(chunks)
    ]


def item_positions(pages: Sequence[Page]) -> list[list[int]]:
    """Global item positions held by each page, e.g. [[0, 1], [2, 3], [4]]."""
    out: list[list[int]] = []
    pos = 0
    for page in pages:
        out.append(list(range(pos, pos + len(page.items))))
        pos += len(page.items)
    return out


def split_overflowing(pages: Sequence[Page], overflowing: Iterable[int]) -> frozenset[int]:
    """
    New break positions for the pages (by index) that overflowed. A multi-item page
    moves its last item to the next page. A last page that cannot shrink that way
    moves its summary blocks to a trailing page. Other single-item pages, and a
    summary-only page, cannot shrink.
    """
    positions = item_positions(pages)
    total = sum(len(p) for p in positions)
    breaks: set[int] = set()
    for idx in overflowing:
        if not 0 <= idx < len(positions):
            continue
        if len(positions[idx]) > 1:
            breaks.add(positions[idx][-1])
        elif pages[idx].is_last and not pages[idx].is_summary_only:
            breaks.add(total)
    return frozenset(breaks)
