from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from catdash import __version__
from catdash.aggregator import DashboardAggregator
from catdash.charts import CHART_TIMEFRAMES, build_chart_seed, is_valid_timeframe, is_valid_token_id
from catdash.composition import build_aggregator
from catdash.config import config_value
from catdash.core.logging import get_logger
from catdash.core.result import Result
from catdash.views import (
    DEFAULT_PAGE_SIZE,
    SORT_DIRECTIONS,
    SORT_FIELDS,
    AdvancedFilters,
    NumericRange,
    apply_filters,
    paginate,
    search_tokens,
    sort_tokens,
)

log = get_logger("api")

NO_STORE = {"Cache-Control": "no-store"}
MAX_PAGE_SIZE = 500


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message}, headers=NO_STORE)


def _default_page_size() -> int:
    return int(config_value("api.default_page_size", DEFAULT_PAGE_SIZE))


def _split_ids(raw: Optional[str]) -> List[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


def get_aggregator(request: Request) -> DashboardAggregator:
    aggregator = request.app.state.aggregator
    if aggregator is None:
        aggregator = build_aggregator()
        request.app.state.aggregator = aggregator
    return aggregator


def create_app(aggregator: Optional[DashboardAggregator] = None) -> FastAPI:
    owns_aggregator = aggregator is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_aggregator and app.state.aggregator is not None:
            await app.state.aggregator.aclose()

    app = FastAPI(title="catdash", version=__version__, lifespan=lifespan)
    app.state.aggregator = aggregator

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/dashboard")
    async def dashboard(
        q: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1, le=MAX_PAGE_SIZE),
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        min_volume: Optional[float] = None,
        max_volume: Optional[float] = None,
        min_change: Optional[float] = None,
        max_change: Optional[float] = None,
        watchlist: Optional[str] = None,
        only_watchlist: bool = False,
        aggregator: DashboardAggregator = Depends(get_aggregator),
    ) -> JSONResponse:
        if sort is not None and sort not in SORT_FIELDS:
            return _error(400, f"Invalid sort field. Must be one of: {', '.join(SORT_FIELDS)}")
        if direction is not None and direction not in SORT_DIRECTIONS:
            return _error(400, "Invalid sort direction. Must be asc or desc")

        result = await aggregator.fetch_dashboard_data()
        if not result.success or result.data is None:
            log.error(f"Dashboard request failed: {result.error_message}")
            return _error(500, result.error_message or "Unknown error")

        snapshot = result.data
        filters = AdvancedFilters(
            price_range=NumericRange(min_price, max_price),
            volume_range=NumericRange(min_volume, max_volume),
            change_range=NumericRange(min_change, max_change),
            only_watchlist=only_watchlist,
        )
        tokens = apply_filters(search_tokens(snapshot.tokens, q), filters, set(_split_ids(watchlist)))
        if sort is not None:
            tokens = sort_tokens(tokens, sort, direction)
        current = paginate(tokens, page, page_size or _default_page_size())

        data = snapshot.model_copy(update={"tokens": current.items}).to_payload()
        return JSONResponse(
            content={"success": True, "data": data, "page": current.to_payload()}, headers=NO_STORE
        )

    @app.get("/api/offers/{token_id}")
    async def offers(token_id: str, aggregator: DashboardAggregator = Depends(get_aggregator)) -> JSONResponse:
        if not token_id.strip():
            return _error(400, "Token ID required")
        history = await aggregator.order_book.fetch_offer_history(token_id)
        return JSONResponse(
            content={"success": True, "data": history.model_dump(mode="json", by_alias=True)}, headers=NO_STORE
        )

    @app.get("/api/charts/{token_id}")
    async def charts(
        token_id: str, timeframe: str = "1D", aggregator: DashboardAggregator = Depends(get_aggregator)
    ) -> JSONResponse:
        if not is_valid_timeframe(timeframe):
            return _error(400, f"Invalid timeframe. Must be one of: {', '.join(CHART_TIMEFRAMES)}")
        if not is_valid_token_id(token_id):
            return _error(400, "Invalid token ID")

        lookup = await Result.capture(aggregator.order_book.get_market(token_id))
        if not lookup.success:
            log.error(f"Chart market lookup failed: {lookup.error_message}")
            return _error(500, "Failed to fetch market data")
        if lookup.data is None:
            return _error(404, "Token not found")

        chart = build_chart_seed(lookup.data, timeframe)
        return JSONResponse(content={"success": True, "data": chart.model_dump(mode="json", by_alias=True)})

    return app


__all__ = ["create_app", "get_aggregator"]
