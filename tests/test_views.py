import pytest

from catdash.data.types import DashboardToken
from catdash.views import (
    AdvancedFilters,
    NumericRange,
    apply_filters,
    get_page_range,
    paginate,
    search_tokens,
    sort_tokens,
)


def _token(token_id, symbol, name, price=0.0, volume=0.0, change=0.0):
    return DashboardToken(
        id=token_id,
        symbol=symbol,
        name=name,
        icon_url="",
        price_xch=price,
        price_usd=price * 25,
        volume_24h_xch=volume,
        change_24h=change,
        last_updated="2026-10-19T00:00:00Z",
        price_source="orderbook",
    )


TOKENS = [
    _token("1", "SBX", "Spacebucks", price=0.00002, volume=120, change=5),
    _token("2", "dbx", "dexie bucks", price=0.0005, volume=30, change=1),
    _token("3", "HOA", "HOA COIN", price=0.002, volume=0, change=-12),
    _token("4", "MWIF", "Marmot Wif Hat", price=0.0005, volume=5, change=0),
]


def test_search_matches_name_or_symbol_case_insensitive():
    assert [t.id for t in search_tokens(TOKENS, "bucks")] == ["1", "2"]
    assert [t.id for t in search_tokens(TOKENS, "DBX")] == ["2"]
    assert search_tokens(TOKENS, "  ") == TOKENS
    assert search_tokens(TOKENS, None) == TOKENS


def test_sort_text_fields_lowercase():
    assert [t.symbol for t in sort_tokens(TOKENS, "symbol")] == ["dbx", "HOA", "MWIF", "SBX"]
    assert [t.symbol for t in sort_tokens(TOKENS, "symbol", "desc")] == ["SBX", "MWIF", "HOA", "dbx"]


def test_sort_numeric_default_desc_and_stable():
    assert [t.id for t in sort_tokens(TOKENS, "priceXch")] == ["3", "2", "4", "1"]
    assert [t.id for t in sort_tokens(TOKENS, "priceXch", "asc")] == ["1", "2", "4", "3"]
    assert [t.id for t in sort_tokens(TOKENS)] == ["1", "2", "4", "3"]


@pytest.mark.parametrize("field,direction", [("liquidity", "asc"), ("name", "sideways")])
def test_sort_rejects_unknown_options(field, direction):
    with pytest.raises(ValueError):
        sort_tokens(TOKENS, field, direction)


def test_filters():
    filters = AdvancedFilters(price_range=NumericRange(0.0001, 0.001), change_range=NumericRange(low=0))
    assert [t.id for t in apply_filters(TOKENS, filters)] == ["2", "4"]
    assert filters.is_active
    assert not AdvancedFilters().is_active
    assert apply_filters(TOKENS, AdvancedFilters()) == TOKENS


def test_watchlist_filter():
    filters = AdvancedFilters(only_watchlist=True, volume_range=NumericRange(high=50))
    assert [t.id for t in apply_filters(TOKENS, filters, watchlist={"1", "3", "4"})] == ["3", "4"]


def test_paginate_clamps_page():
    page = paginate(list(range(55)), page=9, page_size=25)
    assert page.current_page == 3
    assert page.total_pages == 3
    assert page.items == list(range(50, 55))
    assert page.has_prev and not page.has_next
    assert page.to_payload()["totalItems"] == 55


def test_paginate_empty_has_one_page():
    page = paginate([], page=0)
    assert page.current_page == 1
    assert page.total_pages == 1
    assert page.items == []


def test_paginate_rejects_bad_page_size():
    with pytest.raises(ValueError):
        paginate([1], page_size=0)


@pytest.mark.parametrize(
    "current,total,expected",
    [
        (1, 3, [1, 2, 3]),
        (1, 10, [1, 2, 3, 4, 5]),
        (6, 10, [4, 5, 6, 7, 8]),
        (10, 10, [6, 7, 8, 9, 10]),
    ],
)
def test_page_range(current, total, expected):
    assert get_page_range(current, total) == expected
