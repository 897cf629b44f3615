"""Filtered and paged view over the blueprint collection."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

from .types import AVAILABILITY_MODES, Availability, Blueprint

PAGE_SIZES: tuple[int, ...] = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 10


def _matches_availability(bp: Blueprint, availability: str) -> bool:
    if availability == "all":
        return True
    if availability == "available":
        return bp.available
    if availability == "unavailable":
        return not bp.available
    raise ValueError(f"unknown availability filter: {availability!r}")


def filtered_indices(
    collection: Sequence[Blueprint],
    query: str,
    availability: Availability | str = "all",
) -> list[int]:
    q = query.strip().lower()
    indices: list[int] = []
    for idx, bp in enumerate(collection):
        haystack = f"{bp.name} {bp.workshop}".lower()
        if q and q not in haystack:
            continue
        if not _matches_availability(bp, availability):
            continue
        indices.append(idx)
    return indices


@dataclass
class Page:
    page: int
    total_pages: int
    count: int
    indices: list[int]


def total_pages(count: int, page_size: int) -> int:
    return max(1, math.ceil(count / page_size))


def paginate(filtered: Sequence[int], page: int, page_size: int) -> Page:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    pages = total_pages(len(filtered), page_size)
    safe_page = min(max(1, page), pages)
    start = (safe_page - 1) * page_size
    return Page(
        page=safe_page,
        total_pages=pages,
        count=len(filtered),
        indices=list(filtered[start : start + page_size]),
    )


@dataclass
class ViewState:
    search: str = ""
    availability: Availability = "all"
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    page_sizes: tuple[int, ...] = field(default=PAGE_SIZES, repr=False)

    def filtered(self, collection: Sequence[Blueprint]) -> list[int]:
        return filtered_indices(collection, self.search, self.availability)

    def current_page(self, collection: Sequence[Blueprint]) -> Page:
        return paginate(self.filtered(collection), self.page, self.page_size)

    def set_search(self, query: str, collection: Sequence[Blueprint], selected: int) -> None:
        self.search = query
        self.page = 1
        self._follow_selection(collection, selected)

    def set_availability(
        self,
        availability: Availability | str,
        collection: Sequence[Blueprint],
        selected: int,
    ) -> None:
        if availability not in AVAILABILITY_MODES:
            raise ValueError(f"unknown availability filter: {availability!r}")
        self.availability = availability  # type: ignore[assignment]
        self.page = 1
        self._follow_selection(collection, selected)

    def set_page_size(self, size: int) -> None:
        # no selection follow-up
        if size not in self.page_sizes:
            raise ValueError(f"page size must be one of {', '.join(map(str, self.page_sizes))}")
        self.page_size = size
        self.page = 1

    def set_page(self, page: int) -> None:
        self.page = page

    def reset(self) -> None:
        self.search = ""
        self.availability = "all"
        self.page = 1
        self.page_size = DEFAULT_PAGE_SIZE

    def _follow_selection(self, collection: Sequence[Blueprint], selected: int) -> None:
        """Move to the page holding the selected record, if it is still visible."""
        if selected < 0:
            return
        filtered = self.filtered(collection)
        try:
            pos = filtered.index(selected)
        except ValueError:
            return
        self.page = pos // self.page_size + 1
