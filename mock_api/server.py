from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from fastapi import FastAPI, HTTPException

from mock_api.data_seed import fresh_seed, generate_seed

# Dexie under /dexie/v1, TibetSwap under /tibetswap, CoinGecko under /coingecko.
app = FastAPI()
seed = generate_seed()

METRIC_NAMES = (
    "dexie_tokens",
    "dexie_markets",
    "dexie_offers",
    "dexie_price",
    "tibetswap_pairs",
    "coingecko_price",
)

app.state.seed = fresh_seed(seed)
app.state.metrics = {name: 0 for name in METRIC_NAMES}
app.state.failing = set()


def reset_metrics() -> None:
    app.state.metrics = {name: 0 for name in METRIC_NAMES}


def reset_state() -> None:
    reset_metrics()
    app.state.seed = fresh_seed(seed)
    app.state.failing = set()


def fail_endpoint(name: str) -> None:
    if name not in METRIC_NAMES:
        raise KeyError(name)
    app.state.failing.add(name)


def _hit(name: str) -> None:
    app.state.metrics[name] += 1
    if name in app.state.failing:
        raise HTTPException(status_code=503, detail=f"{name} unavailable")


def _asset_ids(assets: List[Dict[str, Any]]) -> Set[str]:
    return {asset.get("id") for asset in assets}


@app.get("/dexie/v1/tokens")
async def dexie_tokens() -> Dict[str, Any]:
    _hit("dexie_tokens")
    return app.state.seed["tokens"]


@app.get("/dexie/v1/markets")
async def dexie_markets() -> Dict[str, Any]:
    _hit("dexie_markets")
    return app.state.seed["markets"]


@app.get("/dexie/v1/offers")
async def dexie_offers(
    status: int = 4, page_size: int = 20, offered: Optional[str] = None, requested: Optional[str] = None
) -> Dict[str, Any]:
    _hit("dexie_offers")
    if page_size < 1 or page_size > 200:
        raise HTTPException(status_code=400, detail="page_size out of range")
    offers = [offer for offer in app.state.seed["offers"]["offers"] if offer.get("status") == status]
    if offered is not None:
        offers = [offer for offer in offers if offered in _asset_ids(offer.get("offered", []))]
    if requested is not None:
        offers = [offer for offer in offers if requested in _asset_ids(offer.get("requested", []))]
    return {"success": True, "count": len(offers), "offers": offers[:page_size]}


@app.get("/dexie/v1/prices/xch")
async def dexie_xch_price() -> Dict[str, Any]:
    _hit("dexie_price")
    return app.state.seed["dexie_price"]


@app.get("/tibetswap/pairs")
async def tibetswap_pairs() -> List[Dict[str, Any]]:
    _hit("tibetswap_pairs")
    return app.state.seed["pairs"]


@app.get("/coingecko/api/v3/simple/price")
async def coingecko_simple_price(ids: str, vs_currencies: str) -> Dict[str, Any]:
    _hit("coingecko_price")
    quotes = app.state.seed["coingecko"]
    currencies = [currency.strip() for currency in vs_currencies.split(",")]
    return {
        coin: {currency: value for currency, value in quotes.get(coin, {}).items() if currency in currencies}
        for coin in ids.split(",")
        if coin in quotes
    }
