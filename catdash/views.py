"""Search, filter, sort and paginate helpers over a merged token list."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Collection, Dict, Generic, List, Optional, Sequence, TypeVar

from catdash.data.types import DashboardToken

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 25
PAGE_SIZE_OPTIONS = (10, 25, 50, 100)

SORT_FIELDS: Dict[str, Callable[[DashboardToken], Any]] = {
    "name": lambda token: token.name.lower(),
    "symbol": lambda token: token.symbol.lower(),
    "priceXch": lambda token: token.price_xch,
    "priceUsd": lambda token: token.price_usd,
    "change24h": lambda token: token.change_24h,
    "change7d": lambda token: token.change_7d,
    "volume24hXch": lambda token: token.volume_24h_xch,
    "volume24hUsd": lambda token: token.volume_24h_usd,
}
TEXT_SORT_FIELDS = {"name", "symbol"}
SORT_DIRECTIONS = ("asc", "desc")


def search_tokens(tokens: Sequence[DashboardToken], query: Optional[str]) -> List[DashboardToken]:
    needle = (query or "").strip().lower()
    if not needle:
        return list(tokens)
    return [token for token in tokens if needle in token.name.lower() or needle in token.symbol.lower()]


def default_direction(sort_field: str) -> str:
    return "asc" if sort_field in TEXT_SORT_FIELDS else "desc"


def sort_tokens(
    tokens: Sequence[DashboardToken], sort_field: str = "volume24hXch", direction: Optional[str] = None
) -> List[DashboardToken]:
    if sort_field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {sort_field}")
    direction = direction or default_direction(sort_field)
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}")
    return sorted(tokens, key=SORT_FIELDS[sort_field], reverse=direction == "desc")


@dataclass(frozen=True)
class NumericRange:
    low: Optional[float] = None
    high: Optional[float] = None

    def contains(self, value: float) -> bool:
        if self.low is not None and value < self.low:
            return False
        if self.high is not None and value > self.high:
            return False
        return True

    @property
    def is_open(self) -> bool:
        return self.low is None and self.high is None


@dataclass(frozen=True)
class AdvancedFilters:
    price_range: NumericRange = field(default_factory=NumericRange)
    volume_range: NumericRange = field(default_factory=NumericRange)
    change_range: NumericRange = field(default_factory=NumericRange)
    only_watchlist: bool = False

    @property
    def is_active(self) -> bool:
        return self.only_watchlist or not (
            self.price_range.is_open and self.volume_range.is_open and self.change_range.is_open
        )


def apply_filters(
    tokens: Sequence[DashboardToken], filters: AdvancedFilters, watchlist: Collection[str] = ()
) -> List[DashboardToken]:
    kept = []
    for token in tokens:
        if not filters.price_range.contains(token.price_xch):
            continue
        if not filters.volume_range.contains(token.volume_24h_xch):
            continue
        if not filters.change_range.contains(token.change_24h):
            continue
        if filters.only_watchlist and token.id not in watchlist:
            continue
        kept.append(token)
    return kept


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    current_page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def to_payload(self) -> Dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "pageSize": self.page_size,
            "totalItems": self.total_items,
            "totalPages": self.total_pages,
            "hasPrev": self.has_prev,
            "hasNext": self.has_next,
        }


def paginate(items: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / page_size))
    current = max(1, min(page, total_pages))
    start = (current - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        current_page=current,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
    )


def get_page_range(current_page: int, total_pages: int, max_visible: int = 5) -> List[int]:
    """Page numbers to show around ``current_page`` in a pager widget."""
    if total_pages <= max_visible:
        return list(range(1, total_pages + 1))
    start = max(1, current_page - max_visible // 2)
    end = min(total_pages, start + max_visible - 1)
    if end - start + 1 < max_visible:
        start = max(1, end - max_visible + 1)
    return list(range(start, end + 1))


__all__ = [
    "AdvancedFilters",
    "DEFAULT_PAGE_SIZE",
    "NumericRange",
    "PAGE_SIZE_OPTIONS",
    "Page",
    "SORT_FIELDS",
    "apply_filters",
    "get_page_range",
    "paginate",
    "search_tokens",
    "sort_tokens",
]
