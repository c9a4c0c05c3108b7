"""Merge engine: one ranked ``DashboardToken`` per token id.

Three passes claim ids in priority order: order-book markets, then AMM-only
pools, then whatever token metadata is left (priced from the last completed
trade when there is one). An id claimed by an earlier pass is never
revisited, so every record carries exactly one price source.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Set

from catdash.data.dexie.provider import DEXIE_ICON_BASE
from catdash.data.tibetswap.provider import liquidity_from_reserve, pools_by_asset, price_from_reserves
from catdash.data.types import (
    DEFAULT_DENOM,
    PRICE_SOURCE_AMM,
    PRICE_SOURCE_LAST_TRADE,
    PRICE_SOURCE_NONE,
    PRICE_SOURCE_ORDERBOOK,
    DashboardToken,
    LastTradeRecord,
    LiquidityPoolInfo,
    MarketStats,
    TokenMetadata,
)

UNKNOWN_SYMBOL = "UNKNOWN"
UNKNOWN_NAME = "Unknown Token"


def utc_now_iso(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return moment.isoformat().replace("+00:00", "Z")


def default_icon_url(token_id: str, icon_base: str = DEXIE_ICON_BASE) -> str:
    return f"{icon_base.rstrip('/')}/{token_id}.webp"


def _order_book_record(
    market: MarketStats,
    token: Optional[TokenMetadata],
    pool: Optional[LiquidityPoolInfo],
    fiat_rate: float,
    timestamp: str,
    icon_base: str,
) -> DashboardToken:
    liquidity_xch = market.depth_liquidity
    if pool is not None:
        liquidity_xch = max(liquidity_xch, liquidity_from_reserve(pool.xch_reserve))
    return DashboardToken(
        id=market.id,
        symbol=(token.code if token else None) or market.code or UNKNOWN_SYMBOL,
        name=(token.name if token else None) or market.name or UNKNOWN_NAME,
        icon_url=(token.icon if token else None) or default_icon_url(market.id, icon_base),
        price_xch=market.last_price,
        price_usd=market.last_price * fiat_rate,
        change_24h=market.change_daily * 100,
        change_7d=market.change_weekly * 100,
        volume_24h_xch=market.volume_daily,
        volume_24h_usd=market.volume_daily * fiat_rate,
        volume_7d_xch=market.volume_weekly,
        volume_7d_usd=market.volume_weekly * fiat_rate,
        liquidity_xch=liquidity_xch,
        liquidity_usd=liquidity_xch * fiat_rate,
        high_24h=market.high_daily,
        low_24h=market.low_daily,
        pair_id=market.pair_id,
        last_updated=timestamp,
        has_market=True,
        price_source=PRICE_SOURCE_ORDERBOOK,
    )


def _amm_record(
    pool: LiquidityPoolInfo,
    token: Optional[TokenMetadata],
    price_xch: float,
    fiat_rate: float,
    timestamp: str,
    icon_base: str,
) -> DashboardToken:
    liquidity_xch = liquidity_from_reserve(pool.xch_reserve)
    return DashboardToken(
        id=pool.asset_id,
        symbol=(token.code if token else None) or pool.short_name or UNKNOWN_SYMBOL,
        name=(token.name if token else None) or pool.name or UNKNOWN_NAME,
        icon_url=(token.icon if token else None) or pool.image_url or default_icon_url(pool.asset_id, icon_base),
        price_xch=price_xch,
        price_usd=price_xch * fiat_rate,
        liquidity_xch=liquidity_xch,
        liquidity_usd=liquidity_xch * fiat_rate,
        pair_id=pool.pair_id,
        last_updated=timestamp,
        has_market=True,
        price_source=PRICE_SOURCE_AMM,
    )


def _metadata_record(
    token: TokenMetadata,
    trade: Optional[LastTradeRecord],
    fiat_rate: float,
    timestamp: str,
    icon_base: str,
) -> DashboardToken:
    icon_url = token.icon or default_icon_url(token.id, icon_base)
    if trade is not None and trade.price_xch > 0:
        return DashboardToken(
            id=token.id,
            symbol=token.code,
            name=token.name,
            icon_url=icon_url,
            price_xch=trade.price_xch,
            price_usd=trade.price_xch * fiat_rate,
            last_updated=trade.completed_at,
            has_market=True,
            price_source=PRICE_SOURCE_LAST_TRADE,
        )
    return DashboardToken(
        id=token.id,
        symbol=token.code,
        name=token.name,
        icon_url=icon_url,
        last_updated=timestamp,
        has_market=False,
        price_source=PRICE_SOURCE_NONE,
    )


def sort_dashboard_tokens(records: Iterable[DashboardToken]) -> List[DashboardToken]:
    records = list(records)
    with_market = sorted((r for r in records if r.has_market), key=lambda r: -r.volume_7d_xch)
    # Ordinal, case-sensitive: "Zed" sorts before "abc".
    without_market = sorted((r for r in records if not r.has_market), key=lambda r: r.symbol)
    return with_market + without_market


def merge_tokens_and_markets(
    tokens: Iterable[TokenMetadata],
    markets: Iterable[MarketStats],
    fiat_rate: float,
    pools: Iterable[LiquidityPoolInfo] = (),
    last_trades: Optional[Mapping[str, LastTradeRecord]] = None,
    now: Optional[datetime] = None,
    icon_base: str = DEXIE_ICON_BASE,
) -> List[DashboardToken]:
    timestamp = utc_now_iso(now)
    tokens = list(tokens)
    token_by_id: Dict[str, TokenMetadata] = {}
    for token in tokens:
        token_by_id.setdefault(token.id, token)
    pool_by_id = pools_by_asset(pools)
    trades = last_trades or {}

    claimed: Set[str] = set()
    records: List[DashboardToken] = []

    for market in markets:
        if market.id in claimed or market.last_price == 0:
            continue
        records.append(
            _order_book_record(
                market, token_by_id.get(market.id), pool_by_id.get(market.id), fiat_rate, timestamp, icon_base
            )
        )
        claimed.add(market.id)

    for asset_id, pool in pool_by_id.items():
        if asset_id in claimed:
            continue
        token = token_by_id.get(asset_id)
        price_xch = price_from_reserves(
            pool.xch_reserve, pool.token_reserve, token.denom if token else DEFAULT_DENOM
        )
        if price_xch == 0:
            continue
        records.append(_amm_record(pool, token, price_xch, fiat_rate, timestamp, icon_base))
        claimed.add(asset_id)

    for token in tokens:
        if token.id in claimed:
            continue
        records.append(_metadata_record(token, trades.get(token.id), fiat_rate, timestamp, icon_base))
        claimed.add(token.id)

    return sort_dashboard_tokens(records)


__all__ = [
    "UNKNOWN_NAME",
    "UNKNOWN_SYMBOL",
    "default_icon_url",
    "merge_tokens_and_markets",
    "sort_dashboard_tokens",
    "utc_now_iso",
]
