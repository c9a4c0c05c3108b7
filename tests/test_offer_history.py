import asyncio

import pytest

from catdash.data.dexie.offers import build_offer_history, offer_history_item_from_dexie, parse_offer_date
from catdash.data.dexie.provider import MockDexieProvider
from catdash.data.dexie.schemas import DexieOffer

MWIF = "d4" * 32


def _offer(offer_id, status, offered, requested, found, completed=None, price=0.0):
    return DexieOffer.model_validate(
        {
            "id": offer_id,
            "trade_id": f"t-{offer_id}",
            "status": status,
            "price": price,
            "date_found": found,
            "date_completed": completed,
            "offered": offered,
            "requested": requested,
        }
    )


def test_item_direction_and_amounts():
    sell = _offer("s", 4, [{"id": "tok", "code": "TOK", "amount": 50}], [{"id": "xch", "amount": 2}], "2026-10-01")
    buy = _offer("b", 0, [{"id": "xch", "amount": 1}], [{"id": "tok", "code": "TOK", "amount": 10}], "2026-10-02")
    sell_item = offer_history_item_from_dexie(sell, "tok")
    buy_item = offer_history_item_from_dexie(buy, "tok")
    assert (sell_item.type, sell_item.status, sell_item.amount_token, sell_item.amount_xch) == ("sell", "completed", 50, 2)
    assert (buy_item.type, buy_item.status, buy_item.token_symbol) == ("buy", "active", "TOK")


@pytest.mark.parametrize("status,expected", [(0, "active"), (1, "pending"), (2, "cancelled"), (3, "cancelled"), (4, "completed"), (9, "active")])
def test_status_mapping(status, expected):
    offer = _offer("x", status, [{"id": "tok", "amount": 1}], [{"id": "xch", "amount": 1}], "2026-10-01")
    assert offer_history_item_from_dexie(offer, "tok").status == expected


def test_history_sorted_newest_first_with_last_trade():
    completed = [
        _offer("old", 4, [{"id": "tok", "amount": 10}], [{"id": "xch", "amount": 1}], "2026-10-01T00:00:00Z", "2026-10-01T01:00:00Z", 0.1),
        _offer("new", 4, [{"id": "tok", "amount": 10}], [{"id": "xch", "amount": 3}], "2026-10-03T00:00:00Z", "2026-10-03T01:00:00Z", 0.3),
    ]
    active = [_offer("open", 0, [{"id": "xch", "amount": 1}], [{"id": "tok", "amount": 5}], "2026-10-02T00:00:00Z")]
    history = build_offer_history("tok", completed, active)
    assert [item.id for item in history.offers] == ["new", "open", "old"]
    assert history.completed_count == 2
    assert history.active_count == 1
    # The first completed entry as delivered by Dexie is the most recent trade.
    assert history.last_trade_price.price == pytest.approx(0.1)
    assert history.last_trade_price.price_xch == pytest.approx(0.1)


def test_history_is_capped():
    completed = [
        _offer(str(i), 4, [{"id": "tok", "amount": 1}], [{"id": "xch", "amount": 1}], f"2026-01-01T00:00:{i % 60:02d}Z")
        for i in range(70)
    ]
    history = build_offer_history("tok", completed, [])
    assert len(history.offers) == 50
    assert history.completed_count == 70
    assert history.last_trade_price is None


def test_unparseable_dates_sort_last():
    assert parse_offer_date("garbage").year == 1970
    assert parse_offer_date(None).year == 1970


def test_mock_provider_offer_history_payload():
    history = asyncio.run(MockDexieProvider().fetch_offer_history(MWIF))
    payload = history.model_dump(mode="json", by_alias=True)
    assert payload["completedCount"] == 2
    assert payload["activeCount"] == 0
    assert [offer["id"] for offer in payload["offers"]] == ["offer-mwif-1", "offer-mwif-0"]
    assert payload["offers"][0]["type"] == "sell"
    assert payload["offers"][0]["taker"] == "Hashgreen"
    assert payload["lastTradePrice"]["priceXch"] == pytest.approx(0.0005)
