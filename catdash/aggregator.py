"""Aggregation entry point: fan out to every source, then merge."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from catdash.core.exceptions import AggregationError
from catdash.core.logging import get_logger
from catdash.core.result import Result
from catdash.data.dexie.offers import OfferHistory
from catdash.data.dexie.provider import DEXIE_ICON_BASE, OrderBookData
from catdash.data.oracle.provider import FALLBACK_XCH_USD, PriceCache
from catdash.data.types import DashboardSnapshot, LastTradeRecord, LiquidityPoolInfo, MarketStats
from catdash.merge import merge_tokens_and_markets, utc_now_iso

log = get_logger("aggregator")

Clock = Callable[[], datetime]


class OrderBookSource(Protocol):
    async def fetch_all(self) -> OrderBookData:
        ...

    async def get_market(self, token_id: str) -> Optional[MarketStats]:
        ...

    async def fetch_offer_history(self, token_id: str) -> OfferHistory:
        ...


class AmmSource(Protocol):
    async def fetch_pairs(self) -> Result[List[LiquidityPoolInfo]]:
        ...


class LastTradeSourceLike(Protocol):
    async def fetch_last_trade_prices(self) -> Result[Dict[str, LastTradeRecord]]:
        ...


class QuoteOracle(Protocol):
    cache: PriceCache
    fallback_xch_usd: float

    async def fetch_quote_fiat_price(self) -> Result[float]:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _settled(outcome: Any) -> Any:
    """Turn an exception left by gather into a failed Result; pass anything else through."""
    if isinstance(outcome, asyncio.CancelledError):
        raise outcome
    if isinstance(outcome, BaseException):
        return Result.fail(outcome)
    return outcome


def empty_snapshot(fiat_rate: float = FALLBACK_XCH_USD, now: Optional[datetime] = None) -> DashboardSnapshot:
    return DashboardSnapshot(tokens=[], fiat_rate=fiat_rate, fetched_at=utc_now_iso(now), is_stale=True)


class DashboardAggregator:
    def __init__(
        self,
        order_book: OrderBookSource,
        amm: AmmSource,
        last_trades: LastTradeSourceLike,
        oracle: QuoteOracle,
        icon_base: str = DEXIE_ICON_BASE,
        clock: Optional[Clock] = None,
    ) -> None:
        self.order_book = order_book
        self.amm = amm
        self.last_trades = last_trades
        self.oracle = oracle
        self.icon_base = icon_base
        self._clock = clock or _utc_now
        self._in_flight: Optional["asyncio.Future[Result[DashboardSnapshot]]"] = None

    @property
    def price_cache(self) -> PriceCache:
        return self.oracle.cache

    async def aclose(self) -> None:
        for source in (self.order_book, self.amm, self.last_trades, self.oracle):
            close = getattr(source, "aclose", None)
            if close is not None:
                await close()

    async def fetch_dashboard_data(self) -> Result[DashboardSnapshot]:
        # Overlapping callers share the cycle already running.
        task = self._in_flight
        if task is None or task.done():
            task = asyncio.ensure_future(self._run_cycle())
            self._in_flight = task
        try:
            return await asyncio.shield(task)
        finally:
            if self._in_flight is task and task.done():
                self._in_flight = None

    async def fetch_dashboard_data_safe(self) -> DashboardSnapshot:
        try:
            result = await self.fetch_dashboard_data()
        except Exception as exc:
            result = Result.fail(exc)
        if result.success and result.data is not None:
            return result.data
        log.error(f"Dashboard cycle failed, serving empty stale snapshot: {result.error_message}")
        return empty_snapshot(fiat_rate=self.oracle.fallback_xch_usd, now=self._clock())

    async def _run_cycle(self) -> Result[DashboardSnapshot]:
        outcomes = await asyncio.gather(
            self.order_book.fetch_all(),
            self.amm.fetch_pairs(),
            self.last_trades.fetch_last_trade_prices(),
            self.oracle.fetch_quote_fiat_price(),
            return_exceptions=True,
        )
        order_book, pairs, trades, quote = (_settled(outcome) for outcome in outcomes)

        if isinstance(order_book, Result):
            return Result.fail(AggregationError("order book", order_book.error))
        if not order_book.tokens.success:
            log.error(f"Order-book tokens fetch failed: {order_book.tokens.error_message}")
            return Result.fail(AggregationError("order-book tokens", order_book.tokens.error))
        if not order_book.markets.success:
            log.error(f"Order-book markets fetch failed: {order_book.markets.error_message}")
            return Result.fail(AggregationError("order-book markets", order_book.markets.error))

        if not pairs.success:
            log.warning(f"AMM pairs unavailable, continuing without pools: {pairs.error_message}")
        if not trades.success:
            log.warning(f"Last-trade prices unavailable, continuing without them: {trades.error_message}")
        fiat_rate = quote.unwrap_or(self.oracle.fallback_xch_usd)
        if not quote.success:
            log.warning(f"Price oracle raised unexpectedly, using {fiat_rate}: {quote.error_message}")

        now = self._clock()
        try:
            tokens = merge_tokens_and_markets(
                order_book.tokens.data or [],
                order_book.markets.data or [],
                fiat_rate,
                pools=pairs.unwrap_or([]),
                last_trades=trades.unwrap_or({}),
                now=now,
                icon_base=self.icon_base,
            )
            snapshot = DashboardSnapshot(tokens=tokens, fiat_rate=fiat_rate, fetched_at=utc_now_iso(now), is_stale=False)
        except Exception as exc:
            log.error(f"Dashboard merge failed: {exc}")
            return Result.fail(AggregationError("merge", exc))
        log.info(f"Dashboard cycle merged {len(tokens)} tokens at {fiat_rate} USD/XCH")
        return Result.ok(snapshot)


__all__ = ["AmmSource", "DashboardAggregator", "LastTradeSourceLike", "OrderBookSource", "QuoteOracle", "empty_snapshot"]
