from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from catdash.aggregator import AmmSource, DashboardAggregator
from catdash.config import config_value
from catdash.data.dexie.last_trade import LastTradeSource
from catdash.data.dexie.provider import DexieProvider, DexieSettings, MockDexieProvider, OrderBookProviderBase
from catdash.data.oracle.provider import (
    FALLBACK_XCH_USD,
    MockPriceOracle,
    OracleSettings,
    PriceCache,
    PriceOracle,
    PriceOracleBase,
)
from catdash.data.tibetswap.provider import MockTibetSwapProvider, TibetSwapProvider, TibetSwapSettings

SOURCE_LIVE = "live"
SOURCE_MOCK = "mock"


@dataclass(frozen=True)
class DashboardProviders:
    order_book: OrderBookProviderBase
    amm: AmmSource
    last_trades: LastTradeSource
    oracle: PriceOracleBase
    icon_base: str


def resolve_source_choice(choice: Optional[str] = None) -> str:
    value = (choice or os.getenv("CATDASH_SOURCES", "")).strip().lower()
    if not value:
        offline = os.getenv("CATDASH_OFFLINE", "").strip().lower() in {"1", "true", "yes"}
        value = SOURCE_MOCK if offline else SOURCE_LIVE
    if value not in {SOURCE_LIVE, SOURCE_MOCK}:
        raise ValueError(f"Unknown dashboard source mode: {value}")
    return value


def build_providers(choice: Optional[str] = None, price_cache: Optional[PriceCache] = None) -> DashboardProviders:
    mode = resolve_source_choice(choice)
    page_size = int(config_value("last_trade.page_size", 200))

    if mode == SOURCE_MOCK:
        dexie_settings = DexieSettings()
        order_book: OrderBookProviderBase = MockDexieProvider()
        amm: AmmSource = MockTibetSwapProvider()
        oracle: PriceOracleBase = MockPriceOracle(
            cache=price_cache, fallback_xch_usd=float(config_value("oracle.fallback_xch_usd", FALLBACK_XCH_USD))
        )
    else:
        dexie_settings = DexieSettings.from_env()
        oracle_settings = OracleSettings.from_env()
        order_book = DexieProvider(settings=dexie_settings)
        amm = TibetSwapProvider(settings=TibetSwapSettings.from_env())
        cache = price_cache if price_cache is not None else PriceCache(ttl_sec=oracle_settings.cache_ttl_sec)
        oracle = PriceOracle(cache=cache, settings=oracle_settings)

    return DashboardProviders(
        order_book=order_book,
        amm=amm,
        last_trades=LastTradeSource(order_book, page_size=page_size),
        oracle=oracle,
        icon_base=dexie_settings.icon_base,
    )


def build_aggregator(choice: Optional[str] = None, price_cache: Optional[PriceCache] = None) -> DashboardAggregator:
    providers = build_providers(choice, price_cache=price_cache)
    return DashboardAggregator(
        order_book=providers.order_book,
        amm=providers.amm,
        last_trades=providers.last_trades,
        oracle=providers.oracle,
        icon_base=providers.icon_base,
    )


__all__ = ["DashboardProviders", "SOURCE_LIVE", "SOURCE_MOCK", "build_aggregator", "build_providers", "resolve_source_choice"]
