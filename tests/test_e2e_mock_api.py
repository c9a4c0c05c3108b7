import httpx
import pytest

from catdash.aggregator import DashboardAggregator
from catdash.data.dexie.last_trade import LastTradeSource
from catdash.data.dexie.provider import DexieProvider, DexieSettings
from catdash.data.http import UpstreamHttpClient
from catdash.data.oracle.provider import OracleSettings, PriceCache, PriceOracle
from catdash.data.tibetswap.provider import TibetSwapProvider, TibetSwapSettings
from mock_api.server import app, fail_endpoint, reset_state

MWIF = "d4" * 32


async def _no_sleep(delay: float) -> None:
    return None


def _aggregator(async_client: httpx.AsyncClient, cache: PriceCache) -> DashboardAggregator:
    dexie = DexieProvider(
        settings=DexieSettings(base_url="http://test/dexie/v1"),
        http_client=UpstreamHttpClient(name="Dexie", async_client=async_client, max_retries=2, sleep=_no_sleep),
        offers_client=UpstreamHttpClient(name="Dexie offers", async_client=async_client),
    )
    return DashboardAggregator(
        order_book=dexie,
        amm=TibetSwapProvider(
            settings=TibetSwapSettings(base_url="http://test/tibetswap"),
            http_client=UpstreamHttpClient(name="TibetSwap", async_client=async_client),
        ),
        last_trades=LastTradeSource(dexie),
        oracle=PriceOracle(
            cache=cache,
            settings=OracleSettings(coingecko_base_url="http://test/coingecko", dexie_base_url="http://test/dexie/v1"),
            http_client=UpstreamHttpClient(name="Price oracle", async_client=async_client),
        ),
    )


@pytest.mark.asyncio
async def test_e2e_mock_api():
    reset_state()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        aggregator = _aggregator(async_client, PriceCache())
        result = await aggregator.fetch_dashboard_data()
        history = await aggregator.order_book.fetch_offer_history(MWIF)

    assert result.success
    snapshot = result.data
    assert snapshot.fiat_rate == 25.5
    sources = {token.symbol: token.price_source for token in snapshot.tokens}
    assert sources == {
        "SBX": "orderbook",
        "DBX": "orderbook",
        "GHOST": "orderbook",
        "HOA": "amm",
        "MWIF": "lastTrade",
        "BEPE": "none",
        "TVL": "none",
    }
    assert history.completed_count == 2

    metrics = app.state.metrics
    assert metrics["dexie_tokens"] == 1
    assert metrics["dexie_markets"] == 1
    assert metrics["tibetswap_pairs"] == 1
    assert metrics["coingecko_price"] == 1
    assert metrics["dexie_price"] == 0
    assert metrics["dexie_offers"] == 5


@pytest.mark.asyncio
async def test_e2e_degraded_upstreams():
    reset_state()
    fail_endpoint("tibetswap_pairs")
    fail_endpoint("coingecko_price")
    fail_endpoint("dexie_offers")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        result = await _aggregator(async_client, PriceCache()).fetch_dashboard_data()

    assert result.success
    assert result.data.fiat_rate == 24.75
    assert {token.price_source for token in result.data.tokens} == {"orderbook", "none"}
    assert app.state.metrics["tibetswap_pairs"] == 1
    assert app.state.metrics["dexie_offers"] == 1


@pytest.mark.asyncio
async def test_e2e_tokens_outage_is_fatal_after_retries():
    reset_state()
    fail_endpoint("dexie_tokens")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        aggregator = _aggregator(async_client, PriceCache())
        result = await aggregator.fetch_dashboard_data()
        snapshot = await aggregator.fetch_dashboard_data_safe()

    assert not result.success
    assert result.error.cause.status_code == 503
    assert app.state.metrics["dexie_tokens"] == 6
    assert snapshot.is_stale is True
    assert snapshot.tokens == []
