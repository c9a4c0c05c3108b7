from catdash.data.dexie.last_trade import LastTradeSource, last_trade_prices_from_offers
from catdash.data.dexie.offers import OfferHistory, OfferHistoryItem, build_offer_history
from catdash.data.dexie.provider import (
    DEXIE_ICON_BASE,
    DexieProvider,
    DexieSettings,
    MockDexieProvider,
    OrderBookData,
    is_valid_market,
    is_valid_token_metadata,
)
from catdash.data.dexie.request_factory import DexieRequestError, DexieRequestFactory

__all__ = [
    "DEXIE_ICON_BASE",
    "DexieProvider",
    "DexieRequestError",
    "DexieRequestFactory",
    "DexieSettings",
    "LastTradeSource",
    "MockDexieProvider",
    "OfferHistory",
    "OfferHistoryItem",
    "OrderBookData",
    "build_offer_history",
    "is_valid_market",
    "is_valid_token_metadata",
    "last_trade_prices_from_offers",
]
